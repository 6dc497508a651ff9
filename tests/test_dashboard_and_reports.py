import datetime
from decimal import Decimal

import pytest

from conftest import OWNER_A, OWNER_B, day
from fleet.models.report import SavedReport
from fleet.services import (customer_service, dashboard_service, driver_service, maintenance_service,
                            report_service, rental_service)
from fleet.services.rental_service import CustomerSnapshot


@pytest.fixture
def fleet(make_vehicle):
    toyota = make_vehicle(make='Toyota', model='Corolla', year=2022, license_plate='T-1')
    bmw = make_vehicle(make='BMW', model='X3', year=2024, license_plate='B-1')
    make_vehicle(owner_id=OWNER_B, make='Ford', model='Ka', license_plate='O-1')

    done = rental_service.create_rental(OWNER_A, toyota.id, CustomerSnapshot('Ann'), '2024-01-01', '2024-01-03', '50')
    rental_service.complete_rental(OWNER_A, done.data['id'], '2024-01-03')
    rental_service.create_rental(OWNER_A, bmw.id, CustomerSnapshot('Bea'), '2024-02-01', '2024-02-05', '80')

    driver_service.add_driver(OWNER_A, 'Ana', 'Silva', 'DL-1', '2024-06-10')
    driver_service.add_driver(OWNER_A, 'Rui', 'Costa', 'DL-2', '2024-05-01', status='inactive')
    driver_service.add_driver(OWNER_A, 'Eva', 'Lima', 'DL-3', '2025-01-01')
    customer_service.add_customer(OWNER_A, 'Ann')

    maintenance_service.create_maintenance_record(OWNER_A, toyota.id, 'Oil Change', '2024-06-01', 'scheduled',
                                                  cost='40')
    maintenance_service.create_maintenance_record(OWNER_A, toyota.id, 'Brakes', '2024-01-01', 'completed',
                                                  cost='200', date_performed='2024-01-01')
    return toyota, bmw


# --- Dashboard ---
def test_dashboard_stats(fleet):
    stats = dashboard_service.get_dashboard_stats(OWNER_A)
    assert stats['total_vehicles'] == 2
    assert stats['active_drivers'] == 2
    assert stats['total_customers'] == 1
    assert stats['active_rentals'] == 1
    assert stats['completed_rentals'] == 1
    assert stats['rental_revenue'] == '150.00'
    assert stats['pending_maintenance'] == 1
    assert stats['completed_maintenance'] == 1
    assert stats['overdue_maintenance'] == 0
    assert 1 <= len(stats['recent_activity']) <= 10
    assert {a['type'] for a in stats['recent_activity']} <= {'vehicle', 'driver', 'maintenance', 'customer', 'rental'}


def test_dashboard_is_empty_without_owner(fleet):
    stats = dashboard_service.get_dashboard_stats(None)
    assert stats['total_vehicles'] == 0
    assert stats['recent_activity'] == []
    assert dashboard_service.get_dashboard_stats(OWNER_B)['total_vehicles'] == 1


# --- Reports ---
def test_catalog_lists_every_generator():
    ids = {entry['id'] for entry in report_service.get_report_catalog()}
    assert ids == set(report_service.GENERATORS)


@pytest.mark.parametrize("make, year, expected", [
    ('Toyota', 2022, Decimal('20250')),
    ('Mercedes-Benz', 2024, Decimal('45000')),
    ('Lada', 2023, Decimal('18000')),
    ('Honda', None, Decimal('22000')),
])
def test_estimate_purchase_price(make, year, expected):
    assert report_service.estimate_purchase_price(make, year, today=day(3, 1)) == expected


def test_license_status():
    today = day(5, 1)
    assert report_service.license_status(day(4, 30), today) == ('Expired', -1)
    assert report_service.license_status(day(5, 30), today) == ('Expiring Soon', 29)
    assert report_service.license_status(day(5, 31), today) == ('Valid', 30)


def test_vehicle_inventory_report(fleet):
    result = report_service.generate_report(OWNER_A, 'vehicle-inventory')
    assert result.success
    assert result.data['headers'] == ['Make', 'Model', 'Year', 'License Plate', 'Added Date']
    assert [row[0] for row in result.data['rows']] == ['BMW', 'Toyota']


def test_driver_license_report(fleet):
    result = report_service.generate_report(OWNER_A, 'driver-license-expiry', today=day(5, 20))
    rows = result.data['rows']
    assert [row[0] for row in rows] == ['Rui Costa', 'Ana Silva', 'Eva Lima']
    assert rows[0][3:] == [-19, 'Expired', 'inactive']
    assert rows[1][3:5] == [21, 'Expiring Soon']
    assert rows[2][4] == 'Valid'


def test_maintenance_schedule_report(fleet):
    result = report_service.generate_report(OWNER_A, 'maintenance-schedule')
    assert result.data['rows'] == [['Toyota Corolla (T-1)', 'Oil Change', '2024-06-01', 'scheduled']]


def test_vehicle_cost_report(fleet):
    result = report_service.generate_report(OWNER_A, 'vehicle-cost', today=day(3, 1))
    rows = {row[0]: row for row in result.data['rows']}
    assert rows['Toyota Corolla (T-1)'] == [
        'Toyota Corolla (T-1)', '$20,250.00', '$240.00', '$150.00', '$20,490.00',
    ]
    assert rows['BMW X3 (B-1)'][1] == '$45,000.00'


def test_rental_revenue_report(fleet):
    result = report_service.generate_report(OWNER_A, 'rental-revenue')
    assert result.data['rows'] == [['BMW X3 (B-1)', 0, '$0.00'], ['Toyota Corolla (T-1)', 1, '$150.00']]


def test_unknown_report(app):
    result = report_service.generate_report(OWNER_A, 'fuel-usage')
    assert result.error == 'NotFound'
    assert report_service.generate_report(None, 'vehicle-inventory').error == 'NotAuthenticated'


def test_report_counts(fleet):
    counts = report_service.get_report_counts(OWNER_A)
    assert counts == {
        'vehicles': 2,
        'drivers': 3,
        'customers': 1,
        'active_rentals': 1,
        'completed_rentals': 1,
        'rental_revenue': '$150.00',
    }


def test_saved_reports_roundtrip(fleet):
    saved = report_service.save_report(OWNER_A, 'rental-revenue', name='Q1 revenue')
    assert saved.success
    assert saved.data['data']['headers'] == ['Vehicle', 'Completed Rentals', 'Revenue']

    default_name = report_service.save_report(OWNER_A, 'vehicle-inventory', today=datetime.date(2024, 4, 1))
    assert default_name.data['name'] == 'Vehicle Inventory - 2024-04-01'

    assert [r.name for r in report_service.get_saved_reports(OWNER_A)] == ['Vehicle Inventory - 2024-04-01',
                                                                         'Q1 revenue']
    assert report_service.get_saved_reports(OWNER_B) == []
    assert report_service.save_report(OWNER_A, 'nope').error == 'NotFound'

    saved_id = saved.data['id']
    assert report_service.delete_saved_report(OWNER_B, saved_id).error == 'NotFound'
    assert report_service.delete_saved_report(OWNER_A, saved_id).success
    assert SavedReport.query.count() == 1


# --- Custom reports ---
def test_custom_report_runs_and_is_saved(fleet):
    result = report_service.generate_custom_report(
        OWNER_A, 'vehicles', ['make', 'license_plate'],
        [{'column': 'year', 'operator': '>', 'value': '2021'}], name='Recent vehicles',
    )
    assert result.success
    assert result.data['name'] == 'Recent vehicles'
    assert result.data['report_id'] == 'custom-vehicles'
    assert result.data['data'] == {'headers': ['make', 'license_plate'], 'rows': [['Toyota', 'T-1'], ['BMW', 'B-1']]}
    assert [r.name for r in report_service.get_saved_reports(OWNER_A)] == ['Recent vehicles']


def test_custom_report_filters(fleet):
    def rows(table, columns, *filters):
        result = report_service.generate_custom_report(OWNER_A, table, columns, list(filters), name='Ad hoc')
        assert result.success, result.message
        return result.data['data']['rows']

    assert rows('vehicles', ['model'], {'column': 'make', 'operator': 'LIKE', 'value': 'oyo'}) == [['Corolla']]
    assert rows('rentals', ['customer_name', 'total_cost'],
                {'column': 'status', 'operator': '=', 'value': 'completed'}) == [['Ann', '150.00']]
    assert rows('maintenance', ['service_type', 'next_due_date'],
                {'column': 'next_due_date', 'operator': '<', 'value': '2024-03-01'}) == [['Brakes', '2024-01-01']]
    assert len(rows('drivers', ['last_name'], {'column': 'email', 'operator': 'IS NULL'})) == 3
    assert rows('drivers', ['last_name'], {'column': 'status', 'operator': '!=', 'value': 'active'}) == [['Costa']]
    assert rows('customers', ['name']) == [['Ann']]


@pytest.mark.parametrize("table, columns, filters, message", [
    ('users', ['email'], [], 'Unknown table: users'),
    ('vehicles', ['make', 'owner_id'], [], 'Unknown column: owner_id'),
    ('vehicles', [], [], 'Select at least one column'),
    ('vehicles', ['make'], [{'column': 'owner_id', 'operator': '=', 'value': 'owner_b'}], 'Unknown column: owner_id'),
    ('vehicles', ['make'], [{'column': 'make', 'operator': '; DROP', 'value': 'x'}], 'Unsupported operator: ; DROP'),
    ('vehicles', ['make'], [{'column': 'year', 'operator': 'LIKE', 'value': '20'}],
     'LIKE only applies to text columns, not year'),
    ('vehicles', ['make'], [{'column': 'year', 'operator': '=', 'value': 'new'}], 'Invalid year: new'),
    ('vehicles', ['make'], [{'column': 'make', 'operator': '='}], 'Missing value for filter on make'),
])
def test_custom_report_rejects_unlisted_input(fleet, table, columns, filters, message):
    result = report_service.generate_custom_report(OWNER_A, table, columns, filters, name='Bad')
    assert result.error == 'ValidationError'
    assert result.message == message
    assert SavedReport.query.count() == 0


def test_custom_report_only_sees_own_records(fleet):
    mine = report_service.generate_custom_report(OWNER_A, 'vehicles', ['make'],
                                                 [{'column': 'make', 'operator': '=', 'value': 'Ford'}], name='Fords')
    assert mine.data['data']['rows'] == []
    theirs = report_service.generate_custom_report(OWNER_B, 'vehicles', ['make', 'model'], [], name='All')
    assert theirs.data['data']['rows'] == [['Ford', 'Ka']]
    assert report_service.generate_custom_report(None, 'vehicles', ['make'], [], name='x').error == 'NotAuthenticated'
    assert [r.name for r in report_service.get_saved_reports(OWNER_B)] == ['All']
