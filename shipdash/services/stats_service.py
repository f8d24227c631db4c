# ==============================================================================
# SERVICIO DE ESTADÍSTICAS - Resúmenes del tablero
# ==============================================================================
# Los cálculos son funciones puras sobre listados de entidades: no modifican
# nada y no fallan si falta una relación opcional (cliente borrado, lote
# sin destino, envío sin estado de pago).
#
# StatsService solo carga los listados desde los repositorios y llama a
# estas funciones.
#
# RANKINGS "TOP N": orden estable por la métrica descendente; los empates
# conservan el orden del listado.
# ==============================================================================

import calendar
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from shipdash.models import (
    Customer,
    Package,
    PartialShipment,
    PartialShipmentItem,
    Shipment,
    User,
)
from shipdash.performance_logger import profile_function
from shipdash.repositories.interfaces import (
    IChildRepository,
    IEntityRepository,
    IPartialShipmentRepository,
    IUserRepository,
)

UNKNOWN_STATUS = 'unknown'
UNKNOWN = 'Unknown'
TOP_N = 10
TREND_MONTHS = 6

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _parse_date(date_str: str) -> Optional[datetime]:
    """
    Parsea una fecha ISO. Retorna None si no puede parsear.
    Las fechas sin zona horaria se asumen UTC.
    """
    if not date_str:
        return None
    try:
        parsed = datetime.fromisoformat(date_str.replace('Z', '+00:00'))
    except (ValueError, TypeError, AttributeError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _top(rows: List[Dict[str, Any]], metric: str, n: int = TOP_N) -> List[Dict[str, Any]]:
    # sorted() es estable: los empates quedan en el orden del listado
    return sorted(rows, key=lambda r: r[metric], reverse=True)[:n]


# ==============================================================================
# TABLERO
# ==============================================================================

def build_dashboard_summary(
    shipments: Sequence[Shipment],
    partial_shipments: Sequence[PartialShipment],
    customers: Sequence[Customer]
) -> Dict[str, Any]:
    """
    Resumen del tablero principal.

    Returns:
        {
            'shipments': [...],                 # más recientes primero, con 'status'
            'stats_by_status': [{status, is_open, count, total_weight, total_volume}],
            'stats_by_destination': [{destination, count, total_weight, total_volume}],
            'partial_shipment_stats': {
                'total_count': int,
                'by_payment_status': [{status, count}],
                'by_customer': [{customer_id, customer_name, count}],
            }
        }
    """
    ordered = sorted(
        shipments,
        key=lambda s: _parse_date(s.date_created) or _EPOCH,
        reverse=True
    )
    shipment_rows = [
        {
            'id': s.id,
            'status': s.status,
            'shipping_date': s.date_created,
            'delivery_date': s.date_closed,
            'destination': s.destination,
            'is_open': s.is_open,
            'total_weight': s.total_weight,
            'total_volume': s.total_volume,
        }
        for s in ordered
    ]

    by_status: Dict[str, Dict[str, Any]] = {}
    by_destination: Dict[str, Dict[str, Any]] = {}
    for s in shipments:
        entry = by_status.setdefault(s.status, {
            'status': s.status, 'is_open': s.is_open,
            'count': 0, 'total_weight': 0.0, 'total_volume': 0.0,
        })
        entry['count'] += 1
        entry['total_weight'] += s.total_weight
        entry['total_volume'] += s.total_volume

        destination = s.destination or UNKNOWN
        entry = by_destination.setdefault(destination, {
            'destination': destination,
            'count': 0, 'total_weight': 0.0, 'total_volume': 0.0,
        })
        entry['count'] += 1
        entry['total_weight'] += s.total_weight
        entry['total_volume'] += s.total_volume

    payment_counts: Dict[str, int] = defaultdict(int)
    customer_counts: Dict[int, int] = defaultdict(int)
    for ps in partial_shipments:
        payment_counts[ps.payment_status or UNKNOWN_STATUS] += 1
        customer_counts[ps.customer_id] += 1

    names = {c.id: c.name for c in customers}

    return {
        'shipments': shipment_rows,
        'stats_by_status': list(by_status.values()),
        'stats_by_destination': list(by_destination.values()),
        'partial_shipment_stats': {
            'total_count': len(partial_shipments),
            'by_payment_status': [
                {'status': status, 'count': count}
                for status, count in payment_counts.items()
            ],
            'by_customer': [
                {
                    'customer_id': customer_id,
                    'customer_name': names.get(customer_id) or UNKNOWN,
                    'count': count,
                }
                for customer_id, count in customer_counts.items()
            ],
        },
    }


# ==============================================================================
# FINANZAS
# ==============================================================================

def build_financial_summary(partial_shipments: Sequence[PartialShipment]) -> Dict[str, Any]:
    """
    Totales financieros de todos los envíos parciales.

    outstanding = costo + extras - descuentos - pagado

    Returns:
        {total_cost, total_discounts, total_extra_costs, total_amount_paid,
         total_outstanding, payment_status_breakdown: [{status, count, amount}]}
    """
    total_cost = sum(ps.cost for ps in partial_shipments)
    total_discounts = sum(ps.discount_amount for ps in partial_shipments)
    total_extra_costs = sum(ps.extra_cost_amount for ps in partial_shipments)
    total_amount_paid = sum(ps.amount_paid for ps in partial_shipments)

    breakdown: Dict[str, Dict[str, Any]] = {}
    for ps in partial_shipments:
        status = ps.payment_status or UNKNOWN_STATUS
        entry = breakdown.setdefault(status, {'status': status, 'count': 0, 'amount': 0.0})
        entry['count'] += 1
        entry['amount'] += ps.cost

    return {
        'total_cost': total_cost,
        'total_discounts': total_discounts,
        'total_extra_costs': total_extra_costs,
        'total_amount_paid': total_amount_paid,
        'total_outstanding': total_cost + total_extra_costs - total_discounts - total_amount_paid,
        'payment_status_breakdown': list(breakdown.values()),
    }


# ==============================================================================
# CLIENTES
# ==============================================================================

def build_customer_summary(
    customers: Sequence[Customer],
    partial_shipments: Sequence[PartialShipment]
) -> Dict[str, Any]:
    """
    Rankings de clientes y distribución por origen.

    Returns:
        {
            'total_customers': int,
            'customer_balances': [{id, name, balance}],           # top 10
            'top_customers_by_shipments': [{id, name, count}],    # top 10
            'top_customers_by_revenue': [{id, name, revenue}],    # top 10
            'customer_origin_breakdown': [{origin, count}],
        }
    """
    shipment_counts: Dict[int, int] = defaultdict(int)
    revenue: Dict[int, float] = defaultdict(float)
    for ps in partial_shipments:
        shipment_counts[ps.customer_id] += 1
        revenue[ps.customer_id] += ps.revenue

    origins: Dict[str, int] = defaultdict(int)
    for c in customers:
        origins[c.origin or UNKNOWN] += 1

    return {
        'total_customers': len(customers),
        'customer_balances': _top(
            [{'id': c.id, 'name': c.name, 'balance': c.balance} for c in customers],
            'balance'
        ),
        'top_customers_by_shipments': _top(
            [{'id': c.id, 'name': c.name, 'count': shipment_counts.get(c.id, 0)} for c in customers],
            'count'
        ),
        'top_customers_by_revenue': _top(
            [{'id': c.id, 'name': c.name, 'revenue': revenue.get(c.id, 0.0)} for c in customers],
            'revenue'
        ),
        'customer_origin_breakdown': [
            {'origin': origin, 'count': count} for origin, count in origins.items()
        ],
    }


# ==============================================================================
# ACTIVIDAD DE USUARIOS
# ==============================================================================

def build_user_activity(
    users: Sequence[User],
    shipments: Sequence[Shipment] = (),
    partial_shipments: Sequence[PartialShipment] = (),
    packages: Sequence[Package] = (),
    items: Sequence[PartialShipmentItem] = (),
    customers: Sequence[Customer] = ()
) -> List[Dict[str, Any]]:
    """
    Feed de actividad a partir de created_by_user_id / updated_by_user_id.

    Por cada registro: una actividad 'create' si el creador es un usuario
    conocido y una 'update' si el último editor lo es. Ids desconocidos
    se omiten.

    Returns:
        [{model, action, record_id, user: {id, username}}]
    """
    known = {u.id: u.to_public_dict() for u in users}
    activities = []

    def extract(records, model_name):
        for record in records:
            if record.created_by_user_id in known:
                activities.append({
                    'model': model_name,
                    'action': 'create',
                    'record_id': record.id,
                    'user': dict(known[record.created_by_user_id]),
                })
            if record.updated_by_user_id in known:
                activities.append({
                    'model': model_name,
                    'action': 'update',
                    'record_id': record.id,
                    'user': dict(known[record.updated_by_user_id]),
                })

    extract(shipments, 'Shipment')
    extract(partial_shipments, 'PartialShipment')
    extract(packages, 'PackageDetail')
    extract(items, 'PartialShipmentItem')
    extract(customers, 'Customer')
    return activities


# ==============================================================================
# ANALÍTICA DE ENVÍOS PARCIALES
# ==============================================================================

def _months_back(now: datetime, count: int) -> List[Dict[str, Any]]:
    """Ventanas [inicio, fin) de los últimos `count` meses, del más antiguo al actual."""
    windows = []
    year, month = now.year, now.month
    for _ in range(count):
        start = datetime(year, month, 1, tzinfo=timezone.utc)
        end_year, end_month = (year + 1, 1) if month == 12 else (year, month + 1)
        end = datetime(end_year, end_month, 1, tzinfo=timezone.utc)
        windows.insert(0, {'year': year, 'month': month, 'start': start, 'end': end})
        year, month = (year - 1, 12) if month == 1 else (year, month - 1)
    return windows


def build_partial_shipment_summary(
    partial_shipments: Sequence[PartialShipment],
    shipments: Sequence[Shipment],
    customers: Sequence[Customer],
    packages: Sequence[Package],
    now: Optional[datetime] = None
) -> Dict[str, Any]:
    """
    Analítica de envíos parciales: totales, desgloses, paquetes y tendencia.

    Args:
        now: Fecha de referencia para la tendencia mensual (por defecto ahora, UTC)

    Returns:
        {
            'total_count', 'total_volume', 'total_cost', 'total_discounts',
            'total_extra_costs', 'total_amount_paid', 'total_outstanding',
            'by_payment_status': [{status, count, amount, volume}],
            'by_customer': [{customer_id, customer_name, count, amount, volume}],
            'by_destination': [{destination, count, amount, volume}],
            'package_stats': {'total_count', 'by_type': [{type, count, weight, volume}]},
            'monthly_trends': [{month, year, count, volume, cost}],   # 6 meses
        }
    """
    now = now or datetime.now(timezone.utc)
    shipment_map = {s.id: s for s in shipments}
    customer_map = {c.id: c for c in customers}
    packages_by_partial: Dict[int, List[Package]] = defaultdict(list)
    for pkg in packages:
        packages_by_partial[pkg.partial_shipment_id].append(pkg)

    financial = build_financial_summary(partial_shipments)

    by_status: Dict[str, Dict[str, Any]] = {}
    by_customer: Dict[int, Dict[str, Any]] = {}
    by_destination: Dict[str, Dict[str, Any]] = {}
    package_types: Dict[str, Dict[str, Any]] = {}
    package_count = 0

    for ps in partial_shipments:
        status = ps.payment_status or UNKNOWN_STATUS
        entry = by_status.setdefault(status, {'status': status, 'count': 0, 'amount': 0.0, 'volume': 0.0})
        entry['count'] += 1
        entry['amount'] += ps.cost
        entry['volume'] += ps.volume

        customer = customer_map.get(ps.customer_id)
        if customer is not None:
            entry = by_customer.setdefault(customer.id, {
                'customer_id': customer.id, 'customer_name': customer.name,
                'count': 0, 'amount': 0.0, 'volume': 0.0,
            })
            entry['count'] += 1
            entry['amount'] += ps.cost
            entry['volume'] += ps.volume

        shipment = shipment_map.get(ps.shipment_id)
        if shipment is not None and shipment.destination:
            entry = by_destination.setdefault(shipment.destination, {
                'destination': shipment.destination, 'count': 0, 'amount': 0.0, 'volume': 0.0,
            })
            entry['count'] += 1
            entry['amount'] += ps.cost
            entry['volume'] += ps.volume

        for pkg in packages_by_partial.get(ps.id, []):
            package_count += 1
            ptype = pkg.type_of_package or UNKNOWN
            entry = package_types.setdefault(ptype, {'type': ptype, 'count': 0, 'weight': 0.0, 'volume': 0.0})
            entry['count'] += pkg.units
            entry['weight'] += pkg.total_weight
            entry['volume'] += pkg.volume

    trends = []
    for window in _months_back(now, TREND_MONTHS):
        in_month = []
        for ps in partial_shipments:
            shipment = shipment_map.get(ps.shipment_id)
            created = _parse_date(shipment.date_created) if shipment else None
            if created and window['start'] <= created < window['end']:
                in_month.append(ps)
        trends.append({
            'month': calendar.month_abbr[window['month']],
            'year': window['year'],
            'count': len(in_month),
            'volume': sum(ps.volume for ps in in_month),
            'cost': sum(ps.cost for ps in in_month),
        })

    return {
        'total_count': len(partial_shipments),
        'total_volume': sum(ps.volume for ps in partial_shipments),
        'total_cost': financial['total_cost'],
        'total_discounts': financial['total_discounts'],
        'total_extra_costs': financial['total_extra_costs'],
        'total_amount_paid': financial['total_amount_paid'],
        'total_outstanding': financial['total_outstanding'],
        'by_payment_status': list(by_status.values()),
        'by_customer': sorted(by_customer.values(), key=lambda r: r['count'], reverse=True),
        'by_destination': sorted(by_destination.values(), key=lambda r: r['count'], reverse=True),
        'package_stats': {
            'total_count': package_count,
            'by_type': sorted(package_types.values(), key=lambda r: r['count'], reverse=True),
        },
        'monthly_trends': trends,
    }


# ==============================================================================
# SERVICIO
# ==============================================================================

class StatsService:
    """
    Servicio de estadísticas del tablero.

    Carga los listados a través de los repositorios y delega en las
    funciones puras de este módulo.
    """

    def __init__(
        self,
        customer_repo: IEntityRepository,
        shipment_repo: IEntityRepository,
        partial_repo: IPartialShipmentRepository,
        package_repo: IChildRepository,
        item_repo: IChildRepository,
        user_repo: IUserRepository
    ):
        self.customer_repo = customer_repo
        self.shipment_repo = shipment_repo
        self.partial_repo = partial_repo
        self.package_repo = package_repo
        self.item_repo = item_repo
        self.user_repo = user_repo

    @profile_function
    def get_dashboard_summary(self) -> Dict[str, Any]:
        return build_dashboard_summary(
            self.shipment_repo.list(),
            self.partial_repo.list(),
            self.customer_repo.list(),
        )

    @profile_function
    def get_financial_summary(self) -> Dict[str, Any]:
        return build_financial_summary(self.partial_repo.list())

    @profile_function
    def get_customer_summary(self) -> Dict[str, Any]:
        return build_customer_summary(self.customer_repo.list(), self.partial_repo.list())

    @profile_function
    def get_user_activity(self) -> List[Dict[str, Any]]:
        return build_user_activity(
            self.user_repo.list(),
            shipments=self.shipment_repo.list(),
            partial_shipments=self.partial_repo.list(),
            packages=self.package_repo.list(),
            items=self.item_repo.list(),
            customers=self.customer_repo.list(),
        )

    @profile_function
    def get_partial_shipment_summary(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        return build_partial_shipment_summary(
            self.partial_repo.list(),
            self.shipment_repo.list(),
            self.customer_repo.list(),
            self.package_repo.list(),
            now=now,
        )


__all__ = [
    'StatsService',
    'build_dashboard_summary',
    'build_financial_summary',
    'build_customer_summary',
    'build_user_activity',
    'build_partial_shipment_summary',
]
