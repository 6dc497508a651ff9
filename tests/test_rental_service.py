"""
Rental lifecycle tests: overlap detection, both day-counting rules, owner
isolation and the edit/complete hand-over.
"""
import datetime
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from conftest import OWNER_A, OWNER_B, day
from fleet.models.rental import Rental
from fleet.services import rental_service
from fleet.services.rental_service import CustomerSnapshot, check_availability, create_rental

CUSTOMER = CustomerSnapshot('Jane Doe', 'jane@example.com', '555-0100')


def book(vehicle, start, end, rate='100', owner_id=OWNER_A, customer=CUSTOMER):
    return create_rental(owner_id, vehicle.id, customer, start, end, rate)


# --- Pure helpers ---
@pytest.mark.parametrize("a, b", [
    ((day(1, 1), day(1, 5)), (day(1, 5), day(1, 10))),
    ((day(1, 1), day(1, 5)), (day(1, 6), day(1, 10))),
    ((day(1, 1), day(1, 31)), (day(1, 10), day(1, 12))),
    ((day(1, 3), day(1, 3)), (day(1, 1), day(1, 2))),
])
def test_overlap_is_symmetric(a, b):
    assert rental_service.ranges_overlap(*a, *b) == rental_service.ranges_overlap(*b, *a)


def test_touching_ranges_overlap():
    assert rental_service.ranges_overlap(day(1, 1), day(1, 5), day(1, 5), day(1, 10))
    assert not rental_service.ranges_overlap(day(1, 1), day(1, 5), day(1, 6), day(1, 10))


def test_creation_duration_uses_ceiling():
    assert rental_service.creation_duration_days(day(1, 1), day(1, 3)) == 2
    assert rental_service.creation_duration_days(day(1, 1), day(1, 1)) == 0
    start = datetime.datetime(2024, 1, 1, 9, 0)
    assert rental_service.creation_duration_days(start, datetime.datetime(2024, 1, 2, 10, 0)) == 2


def test_completion_duration_is_inclusive():
    assert rental_service.completion_duration_days(day(1, 1), day(1, 1)) == 1
    assert rental_service.completion_duration_days(day(1, 1), day(1, 3)) == 3


# --- Availability ---
def test_touching_boundary_is_unavailable(vehicle):
    assert book(vehicle, '2024-01-01', '2024-01-05')
    assert check_availability(OWNER_A, vehicle.id, '2024-01-05', '2024-01-10') is False


def test_adjacent_period_is_available(vehicle):
    assert book(vehicle, '2024-01-01', '2024-01-05')
    assert check_availability(OWNER_A, vehicle.id, '2024-01-06', '2024-01-10') is True


def test_excluded_rental_does_not_conflict(vehicle):
    result = book(vehicle, '2024-01-01', '2024-01-05')
    rental_id = result.data['id']
    assert check_availability(OWNER_A, vehicle.id, '2024-01-02', '2024-01-04') is False
    assert check_availability(OWNER_A, vehicle.id, '2024-01-02', '2024-01-04', exclude_rental_id=rental_id) is True


def test_only_active_rentals_block(vehicle):
    result = book(vehicle, '2024-01-01', '2024-01-05')
    rental_service.update_rental_status(OWNER_A, result.data['id'], 'cancelled')
    assert check_availability(OWNER_A, vehicle.id, '2024-01-02', '2024-01-03') is True


def test_availability_fails_closed(vehicle, monkeypatch):
    assert check_availability(None, vehicle.id, '2024-01-01', '2024-01-02') is False
    assert check_availability(OWNER_A, vehicle.id, 'not-a-date', '2024-01-02') is False

    def broken(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    monkeypatch.setattr(rental_service, '_overlapping_query', broken)
    assert check_availability(OWNER_A, vehicle.id, '2024-01-01', '2024-01-02') is False


def test_create_rental_reports_unavailable_when_check_fails(vehicle, monkeypatch):
    def broken(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    monkeypatch.setattr(rental_service, '_overlapping_query', broken)
    result = book(vehicle, '2024-01-01', '2024-01-03')
    assert result.error == 'VehicleUnavailable'
    monkeypatch.undo()
    assert Rental.query.count() == 0


# --- Creation ---
def test_create_rental_bills_elapsed_days(vehicle):
    result = book(vehicle, '2024-01-01', '2024-01-03', rate='100')
    assert result.success
    assert result.message == 'Rental added successfully'
    assert result.data['total_cost'] == '200.00'
    assert result.data['daily_rate'] == '100.00'
    assert result.data['status'] == 'active'
    assert result.data['customer_name'] == 'Jane Doe'
    assert result.data['vehicle_info'] == 'Toyota Corolla (2020) - ABC-123'


def test_same_day_booking_costs_nothing(vehicle):
    result = book(vehicle, '2024-01-01', '2024-01-01', rate='100')
    assert result.success
    assert result.data['total_cost'] == '0.00'


def test_money_rounds_half_up_to_cents(vehicle):
    result = book(vehicle, '2024-01-01', '2024-01-02', rate='33.335')
    assert result.data['daily_rate'] == '33.34'
    assert result.data['total_cost'] == '33.34'


@pytest.mark.parametrize("kwargs, message", [
    ({'customer': CustomerSnapshot('  ')}, 'Missing required fields'),
    ({'rate': '0'}, 'Daily rate must be greater than zero'),
    ({'rate': '-5'}, 'Daily rate must be greater than zero'),
])
def test_create_rental_validation(vehicle, kwargs, message):
    result = book(vehicle, '2024-01-01', '2024-01-03', **kwargs)
    assert not result.success
    assert result.error == 'ValidationError'
    assert result.message == message
    assert Rental.query.count() == 0


def test_create_rental_rejects_reversed_period(vehicle):
    result = book(vehicle, '2024-01-05', '2024-01-01')
    assert result.error == 'ValidationError'


def test_create_rental_requires_owner(vehicle):
    result = book(vehicle, '2024-01-01', '2024-01-03', owner_id=None)
    assert result.error == 'NotAuthenticated'
    assert result.message == 'User not authenticated'
    assert Rental.query.count() == 0


def test_create_rental_unknown_vehicle(app):
    result = create_rental(OWNER_A, 999, CUSTOMER, '2024-01-01', '2024-01-03', '100')
    assert result.error == 'NotFound'


def test_overlapping_booking_is_rejected(vehicle):
    assert book(vehicle, '2024-01-01', '2024-01-05')
    result = book(vehicle, '2024-01-03', '2024-01-08')
    assert not result.success
    assert result.error == 'VehicleUnavailable'
    assert result.message.startswith('This vehicle is already rented during the selected period.')
    assert Rental.query.count() == 1


def test_store_error_is_reported_and_rolled_back(vehicle, db, monkeypatch):
    def broken_commit():
        raise OperationalError("INSERT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(db.session, 'commit', broken_commit)
    result = book(vehicle, '2024-01-01', '2024-01-03')
    assert result.error == 'StoreError'
    assert result.message.startswith('Error adding rental')
    monkeypatch.undo()
    assert Rental.query.count() == 0


# --- Completion ---
def test_same_day_completion_bills_one_day(vehicle):
    rental_id = book(vehicle, '2024-01-01', '2024-01-05', rate='100').data['id']
    result = rental_service.complete_rental(OWNER_A, rental_id, actual_end_date='2024-01-01')
    assert result.success
    assert result.message == 'Rental completed successfully. Final cost: $100.00 for 1 day(s).'
    assert result.data['status'] == 'completed'
    assert result.data['end_date'] == '2024-01-01'
    assert result.data['total_cost'] == '100.00'
    assert result.data['duration_days'] == 1


def test_completion_defaults_to_today(vehicle):
    today = datetime.date.today()
    rental_id = book(vehicle, today - datetime.timedelta(days=2), today, rate='10').data['id']
    result = rental_service.complete_rental(OWNER_A, rental_id)
    assert result.data['duration_days'] == 3
    assert result.data['total_cost'] == '30.00'


def test_completion_is_not_idempotent(vehicle):
    rental_id = book(vehicle, '2024-01-01', '2024-01-05', rate='100').data['id']
    first = rental_service.complete_rental(OWNER_A, rental_id, actual_end_date='2024-01-02')
    second = rental_service.complete_rental(OWNER_A, rental_id, actual_end_date='2024-01-04')
    assert first.data['total_cost'] == '200.00'
    assert second.success
    assert second.data['total_cost'] == '400.00'
    assert second.data['end_date'] == '2024-01-04'


def test_completion_before_start_is_accepted(vehicle):
    rental_id = book(vehicle, '2024-01-05', '2024-01-08', rate='100').data['id']
    result = rental_service.complete_rental(OWNER_A, rental_id, actual_end_date='2024-01-01')
    assert result.success
    assert result.data['duration_days'] == -3
    assert result.data['total_cost'] == '-300.00'
    assert result.data['end_date'] == '2024-01-01'
    assert result.data['status'] == 'completed'


def test_completion_keeps_notes_unless_given(vehicle):
    rental_id = create_rental(OWNER_A, vehicle.id, CUSTOMER, '2024-01-01', '2024-01-03', '50',
                              notes='airport pickup').data['id']
    assert rental_service.complete_rental(OWNER_A, rental_id, '2024-01-03').data['notes'] == 'airport pickup'
    assert rental_service.complete_rental(OWNER_A, rental_id, '2024-01-03', notes='scratched').data['notes'] == 'scratched'


def test_completed_rental_frees_the_vehicle(vehicle):
    rental_id = book(vehicle, '2024-01-01', '2024-01-10').data['id']
    rental_service.complete_rental(OWNER_A, rental_id, actual_end_date='2024-01-04')
    assert check_availability(OWNER_A, vehicle.id, '2024-01-05', '2024-01-08') is True


# --- Edits ---
def test_update_rental_recomputes_with_creation_rule(vehicle):
    rental_id = book(vehicle, '2024-01-01', '2024-01-03', rate='100').data['id']
    result = rental_service.update_rental(OWNER_A, rental_id, '2024-01-01', '2024-01-06', '80', notes='extended')
    assert result.success
    assert result.message == 'Rental updated successfully'
    assert result.data['total_cost'] == '400.00'
    assert result.data['daily_rate'] == '80.00'
    assert result.data['notes'] == 'extended'
    assert result.data['status'] == 'active'


def test_update_to_completed_hands_over_to_completion(vehicle):
    rental_id = book(vehicle, '2024-01-01', '2024-01-05', rate='100').data['id']
    result = rental_service.update_rental(OWNER_A, rental_id, '2024-01-01', '2024-01-03', '100', status='completed')
    assert result.success
    assert result.message.startswith('Rental completed successfully')
    # inclusive count on completion: 3 days, not 2
    assert result.data['total_cost'] == '300.00'
    assert result.data['status'] == 'completed'


def test_update_does_not_recheck_overlap(vehicle):
    book(vehicle, '2024-01-01', '2024-01-05')
    second_id = book(vehicle, '2024-01-10', '2024-01-15', rate='10').data['id']
    result = rental_service.update_rental(OWNER_A, second_id, '2024-01-03', '2024-01-12', '10')
    assert result.success
    assert result.data['start_date'] == '2024-01-03'
    assert result.data['total_cost'] == '90.00'


def test_update_rental_invalid_status(vehicle):
    rental_id = book(vehicle, '2024-01-01', '2024-01-05').data['id']
    result = rental_service.update_rental(OWNER_A, rental_id, '2024-01-01', '2024-01-05', '100', status='lost')
    assert result.error == 'ValidationError'


def test_update_rental_status(vehicle):
    rental_id = book(vehicle, '2024-01-01', '2024-01-05').data['id']
    result = rental_service.update_rental_status(OWNER_A, rental_id, 'cancelled')
    assert result.message == 'Rental marked as cancelled'
    assert rental_service.update_rental_status(OWNER_A, rental_id, 'unknown').error == 'ValidationError'
    assert Rental.query.filter_by(id=rental_id).one().status == 'cancelled'


def test_delete_rental(vehicle):
    rental_id = book(vehicle, '2024-01-01', '2024-01-05').data['id']
    result = rental_service.delete_rental(OWNER_A, rental_id)
    assert result.message == 'Rental deleted successfully'
    assert rental_service.delete_rental(OWNER_A, rental_id).error == 'NotFound'
    assert rental_service.delete_rental(OWNER_A, None).error == 'ValidationError'


# --- Ownership ---
def test_other_owner_cannot_touch_rental(vehicle):
    rental_id = book(vehicle, '2024-01-01', '2024-01-05').data['id']

    assert rental_service.get_rental_by_id(OWNER_B, rental_id) is None
    assert rental_service.get_rentals(OWNER_B) == []
    assert rental_service.complete_rental(OWNER_B, rental_id, '2024-01-02').error == 'NotFound'
    assert rental_service.update_rental_status(OWNER_B, rental_id, 'cancelled').error == 'NotFound'
    assert rental_service.update_rental(OWNER_B, rental_id, '2024-01-01', '2024-01-02', '1').error == 'NotFound'
    assert rental_service.delete_rental(OWNER_B, rental_id).error == 'NotFound'

    rental = Rental.query.filter_by(id=rental_id).one()
    assert rental.status == 'active'
    assert rental.total_cost == Decimal('400.00')


def test_other_owner_cannot_book_vehicle(vehicle):
    result = book(vehicle, '2024-01-01', '2024-01-05', owner_id=OWNER_B)
    assert result.error == 'NotFound'


def test_availability_only_sees_own_rentals(vehicle, make_vehicle):
    book(vehicle, '2024-01-01', '2024-01-05')
    # the other owner has no active rentals on this vehicle id
    assert check_availability(OWNER_B, vehicle.id, '2024-01-02', '2024-01-03') is True


# --- End to end ---
def test_booking_scenario(make_vehicle):
    vehicle = make_vehicle(id=7, license_plate='SEVEN')
    first = create_rental(OWNER_A, 7, CUSTOMER, '2024-03-01', '2024-03-04', '50')
    assert first.success
    assert first.data['total_cost'] == '150.00'
    assert first.data['status'] == 'active'

    second = create_rental(OWNER_A, vehicle.id, CUSTOMER, '2024-03-03', '2024-03-05', '50')
    assert not second.success
    assert second.error == 'VehicleUnavailable'
    assert Rental.query.filter_by(vehicle_id=7).count() == 1
