# -*- coding: utf-8 -*-
"""
Escenario completo Lagos → Abuja sobre el almacén JSON en disco:
alta de lotes, envío con un paquete de 3 unidades y transferencia.
"""
from shipdash.app_container import AppContainer
from shipdash.auth import fixed_user
from shipdash.repositories import JSONTableStore


def test_lagos_to_abuja(tmp_path):
    AppContainer.reset_instance()
    try:
        c = AppContainer(store=JSONTableStore(str(tmp_path)), current_user=fixed_user(3))

        lagos = c.shipment_service.create_shipment('Lagos')
        abuja = c.shipment_service.create_shipment('Abuja')
        customer = c.customer_service.create_customer('Emeka', origin='Lagos')
        assert (lagos.total_weight, lagos.total_volume) == (0.0, 0.0)

        partial = c.partial_shipment_service.create_partial_shipment(
            lagos.id, customer.id,
            receiver_name='Bisi', receiver_phone='0805', receiver_address='Wuse 2',
            cost=60,
            packages=[{'length': 2, 'width': 1, 'height': 1, 'weight': 7, 'units': 3}],
        )
        lagos = c.shipment_repo.get_by_id(lagos.id)
        assert (lagos.total_weight, lagos.total_volume) == (21.0, 6.0)

        c.partial_shipment_service.transfer_partial_shipment(lagos.id, partial.id, abuja.id)

        # Releer desde otra instancia del almacén: todo quedó en disco
        fresh = JSONTableStore(str(tmp_path))
        assert fresh.get('shipments', lagos.id)['total_weight'] == 0.0
        assert fresh.get('shipments', lagos.id)['total_volume'] == 0.0
        assert fresh.get('shipments', abuja.id)['total_weight'] == 21.0
        assert fresh.get('shipments', abuja.id)['total_volume'] == 6.0
        assert fresh.get('partial_shipments', partial.id)['shipment_id'] == abuja.id
        assert fresh.get('customers', customer.id)['balance'] == 60.0

        details = c.hydration_service.get_shipment_with_details(abuja.id)
        assert [p['id'] for p in details['partial_shipments']] == [partial.id]
        assert details['partial_shipments'][0]['customer']['name'] == 'Emeka'

        summary = c.stats_service.get_dashboard_summary()
        assert summary['partial_shipment_stats']['total_count'] == 1
    finally:
        AppContainer.reset_instance()
