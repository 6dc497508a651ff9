"""
Built-in fleet reports and the owner's saved report snapshots.

Every generator returns a table as ``{'headers': [...], 'rows': [[...], ...]}``
built only from the caller's own records.
"""
import datetime
import json
from decimal import Decimal

from flask import current_app
from sqlalchemy import func

from fleet.exceptions import NotFound, ValidationError
from fleet.extensions import db
from fleet.models.people import Customer, Driver
from fleet.models.rental import Rental
from fleet.models.report import SavedReport
from fleet.models.vehicle import MaintenanceRecord, Vehicle
from fleet.services.dashboard_service import get_dashboard_stats
from fleet.services.results import ActionResult, service_action
from fleet.utils import format_currency, format_money, isoformat, parse_date, parse_money

REPORT_CATALOG = {
    'vehicle-inventory': {
        'name': 'Vehicle Inventory',
        'description': 'Complete list of all vehicles with their details',
        'category': 'vehicle',
    },
    'driver-license-expiry': {
        'name': 'Driver License Expiry',
        'description': 'List of drivers with upcoming license expiration dates',
        'category': 'driver',
    },
    'maintenance-schedule': {
        'name': 'Maintenance Schedule',
        'description': 'Upcoming and overdue maintenance tasks for all vehicles',
        'category': 'maintenance',
    },
    'vehicle-cost': {
        'name': 'Vehicle Cost Analysis',
        'description': 'Breakdown of costs associated with each vehicle',
        'category': 'vehicle',
    },
    'rental-revenue': {
        'name': 'Rental Revenue',
        'description': 'Completed rentals and revenue per vehicle',
        'category': 'rental',
    },
}

LICENSE_WARNING_DAYS = 30

# Rough list prices by make, used when no purchase price is recorded
BASE_PRICES = (
    (('toyota',), 25000),
    (('honda',), 22000),
    (('ford',), 35000),
    (('bmw', 'mercedes'), 45000),
)
DEFAULT_BASE_PRICE = 20000
YEARLY_DEPRECIATION = Decimal('0.9')


def get_report_catalog():
    return [dict(id=report_id, **meta) for report_id, meta in REPORT_CATALOG.items()]


# --- Helpers ---
def estimate_purchase_price(make, year, today=None):
    """
    Make-based list price, depreciated 10% for each year of age.
    Example:
        Input: ("Toyota", 2022) in 2024
        Output: Decimal('20250.00')
    """
    make = (make or '').lower()
    price = DEFAULT_BASE_PRICE
    for names, base in BASE_PRICES:
        if any(name in make for name in names):
            price = base
            break
    price = Decimal(price)
    today = today or datetime.date.today()
    if year and today.year > year:
        price = price * YEARLY_DEPRECIATION ** (today.year - year)
    return price


def license_status(expiry, today):
    days_remaining = (expiry - today).days
    if days_remaining < 0:
        return 'Expired', days_remaining
    if days_remaining < LICENSE_WARNING_DAYS:
        return 'Expiring Soon', days_remaining
    return 'Valid', days_remaining


def _sum_by_vehicle(column, owner_id, *criteria):
    model = column.class_
    rows = db.session.query(model.vehicle_id, func.coalesce(func.sum(column), 0)) \
        .filter(model.owner_id == owner_id, *criteria) \
        .group_by(model.vehicle_id).all()
    return {vehicle_id: Decimal(str(total)) for vehicle_id, total in rows}


# --- Generators ---
def _vehicle_inventory(owner_id, today):
    vehicles = Vehicle.query.filter_by(owner_id=owner_id).order_by(Vehicle.make, Vehicle.model).all()
    return {
        'headers': ['Make', 'Model', 'Year', 'License Plate', 'Added Date'],
        'rows': [[v.make, v.model, v.year, v.license_plate, isoformat(v.created_at.date()) if v.created_at else None]
                 for v in vehicles],
    }


def _driver_license_expiry(owner_id, today):
    drivers = Driver.query.filter_by(owner_id=owner_id).order_by(Driver.license_expiry.asc()).all()
    rows = []
    for driver in drivers:
        status, days_remaining = license_status(driver.license_expiry, today)
        rows.append([driver.full_name, driver.license_number, isoformat(driver.license_expiry),
                     days_remaining, status, driver.status])
    return {
        'headers': ['Driver Name', 'License Number', 'Expiry Date', 'Days Remaining', 'Status', 'Driver Status'],
        'rows': rows,
    }


def _maintenance_schedule(owner_id, today):
    records = MaintenanceRecord.query.filter(
        MaintenanceRecord.owner_id == owner_id,
        MaintenanceRecord.status != 'completed',
    ).order_by(MaintenanceRecord.next_due_date.asc()).all()
    return {
        'headers': ['Vehicle', 'Service Type', 'Due Date', 'Status'],
        'rows': [[r.vehicle.short_name, r.service_type, isoformat(r.next_due_date), r.status] for r in records],
    }


def _vehicle_cost(owner_id, today):
    maintenance = _sum_by_vehicle(MaintenanceRecord.cost, owner_id)
    revenue = _sum_by_vehicle(Rental.total_cost, owner_id, Rental.status == 'completed')
    rows = []
    for vehicle in Vehicle.query.filter_by(owner_id=owner_id).order_by(Vehicle.make, Vehicle.model).all():
        purchase = estimate_purchase_price(vehicle.make, vehicle.year, today)
        upkeep = maintenance.get(vehicle.id, Decimal(0))
        rows.append([
            vehicle.short_name,
            format_currency(purchase),
            format_currency(upkeep),
            format_currency(revenue.get(vehicle.id, 0)),
            format_currency(purchase + upkeep),
        ])
    return {
        'headers': ['Vehicle', 'Purchase Cost', 'Maintenance Cost', 'Rental Revenue', 'Total Cost'],
        'rows': rows,
    }


def _rental_revenue(owner_id, today):
    totals = db.session.query(Rental.vehicle_id, func.count(Rental.id), func.coalesce(func.sum(Rental.total_cost), 0)) \
        .filter(Rental.owner_id == owner_id, Rental.status == 'completed') \
        .group_by(Rental.vehicle_id).all()
    by_vehicle = {vehicle_id: (count, total) for vehicle_id, count, total in totals}
    rows = []
    for vehicle in Vehicle.query.filter_by(owner_id=owner_id).order_by(Vehicle.make, Vehicle.model).all():
        count, total = by_vehicle.get(vehicle.id, (0, 0))
        rows.append([vehicle.short_name, count, format_currency(total)])
    return {
        'headers': ['Vehicle', 'Completed Rentals', 'Revenue'],
        'rows': rows,
    }


GENERATORS = {
    'vehicle-inventory': _vehicle_inventory,
    'driver-license-expiry': _driver_license_expiry,
    'maintenance-schedule': _maintenance_schedule,
    'vehicle-cost': _vehicle_cost,
    'rental-revenue': _rental_revenue,
}


@service_action('generating report')
def generate_report(owner_id, report_id, today=None):
    generator = GENERATORS.get(report_id)
    if generator is None:
        raise NotFound(f"Unknown report: {report_id}")
    data = generator(owner_id, today or datetime.date.today())
    return ActionResult.ok(REPORT_CATALOG[report_id]['name'], data=data)


def get_report_counts(owner_id):
    """Headline numbers shown above the report list."""
    if not owner_id:
        return {'vehicles': 0, 'drivers': 0, 'customers': 0, 'active_rentals': 0,
                'completed_rentals': 0, 'rental_revenue': format_currency(0)}
    stats = get_dashboard_stats(owner_id)
    return {
        'vehicles': stats['total_vehicles'],
        'drivers': Driver.query.filter_by(owner_id=owner_id).count(),
        'customers': stats['total_customers'],
        'active_rentals': stats['active_rentals'],
        'completed_rentals': stats['completed_rentals'],
        'rental_revenue': format_currency(stats['rental_revenue']),
    }


# --- Saved reports ---
@service_action('saving report')
def save_report(owner_id, report_id, name=None, today=None):
    if report_id not in REPORT_CATALOG:
        raise NotFound(f"Unknown report: {report_id}")
    generated = generate_report(owner_id, report_id, today=today)
    if not generated:
        return generated
    name = (name or '').strip() or f"{REPORT_CATALOG[report_id]['name']} - {(today or datetime.date.today()).isoformat()}"
    if len(name) > 255:
        raise ValidationError("Report name is too long")

    saved = SavedReport(owner_id=owner_id, report_id=report_id, name=name, data=json.dumps(generated.data))
    db.session.add(saved)
    db.session.commit()
    return ActionResult.ok('Report saved successfully', data=saved.to_dict(include_data=True))


def get_saved_reports(owner_id):
    if not owner_id:
        return []
    return SavedReport.query.filter_by(owner_id=owner_id) \
        .order_by(SavedReport.created_at.desc(), SavedReport.id.desc()).all()


@service_action('deleting saved report')
def delete_saved_report(owner_id, saved_report_id):
    saved = SavedReport.query.filter_by(id=saved_report_id, owner_id=owner_id).first()
    if saved is None:
        raise NotFound("Report not found or you do not have permission to delete it")
    db.session.delete(saved)
    db.session.commit()
    return ActionResult.ok('Report deleted successfully')


# --- Custom reports ---
CUSTOM_TABLES = {
    'vehicles': (Vehicle, ('id', 'make', 'model', 'year', 'license_plate', 'created_at')),
    'drivers': (Driver, ('id', 'first_name', 'last_name', 'license_number', 'license_expiry',
                         'contact_number', 'email', 'status', 'created_at')),
    'maintenance': (MaintenanceRecord, ('id', 'vehicle_id', 'service_type', 'description', 'date_performed',
                                        'next_due_date', 'cost', 'status', 'service_provider', 'created_at')),
    'rentals': (Rental, ('id', 'vehicle_id', 'customer_name', 'customer_email', 'customer_phone', 'start_date',
                         'end_date', 'daily_rate', 'total_cost', 'status', 'notes', 'created_at')),
    'customers': (Customer, ('id', 'name', 'email', 'phone', 'address', 'notes', 'created_at')),
}

CUSTOM_OPERATORS = {
    '=': lambda column, value: column == value,
    '!=': lambda column, value: column != value,
    '<': lambda column, value: column < value,
    '>': lambda column, value: column > value,
    'LIKE': lambda column, value: column.contains(value, autoescape=True),
    'IS NULL': lambda column, value: column.is_(None),
    'IS NOT NULL': lambda column, value: column.isnot(None),
}
VALUELESS_OPERATORS = ('IS NULL', 'IS NOT NULL')


def _coerce_filter_value(column, operator, value):
    """Converts the raw filter value to the column's Python type."""
    if operator in VALUELESS_OPERATORS:
        return None
    if value is None or str(value).strip() == '':
        raise ValidationError(f"Missing value for filter on {column.key}")
    python_type = column.expression.type.python_type
    if operator == 'LIKE':
        if python_type is not str:
            raise ValidationError(f"LIKE only applies to text columns, not {column.key}")
        return str(value)
    if python_type is datetime.datetime:
        date = parse_date(value, column.key)
        return datetime.datetime(date.year, date.month, date.day)
    if python_type is datetime.date:
        return parse_date(value, column.key)
    if python_type is Decimal:
        return parse_money(value, column.key)
    if python_type is int:
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid {column.key}: {value}")
    return str(value)


def _custom_conditions(model, allowed, filters):
    conditions = []
    for item in filters or []:
        if not isinstance(item, dict):
            raise ValidationError("Each filter needs a column, an operator and a value")
        column_name, operator = item.get('column'), item.get('operator')
        if column_name not in allowed:
            raise ValidationError(f"Unknown column: {column_name}")
        if operator not in CUSTOM_OPERATORS:
            raise ValidationError(f"Unsupported operator: {operator}")
        column = getattr(model, column_name)
        conditions.append(CUSTOM_OPERATORS[operator](column, _coerce_filter_value(column, operator, item.get('value'))))
    return conditions


def _cell(value):
    if isinstance(value, Decimal):
        return format_money(value)
    if isinstance(value, datetime.date):
        return isoformat(value)
    return value


@service_action('generating custom report')
def generate_custom_report(owner_id, table, columns, filters=None, name=None):
    """
    Runs an ad-hoc query over one of the owner's tables and saves the result.

    Tables, columns and operators come from fixed lists; anything else is a
    ``ValidationError``. Rows are always limited to the caller's records.
    """
    if table not in CUSTOM_TABLES:
        raise ValidationError(f"Unknown table: {table}")
    model, allowed = CUSTOM_TABLES[table]
    if isinstance(columns, str):
        columns = [columns]
    if not columns:
        raise ValidationError("Select at least one column")
    unknown = [c for c in columns if c not in allowed]
    if unknown:
        raise ValidationError(f"Unknown column: {', '.join(map(str, unknown))}")
    name = (name or '').strip()
    if not name:
        raise ValidationError("Report name is required")
    if len(name) > 255:
        raise ValidationError("Report name is too long")

    conditions = _custom_conditions(model, allowed, filters)
    query = db.session.query(*[getattr(model, c) for c in columns]) \
        .filter(model.owner_id == owner_id, *conditions) \
        .order_by(model.id.asc())
    data = {
        'headers': list(columns),
        'rows': [[_cell(value) for value in row] for row in query.all()],
    }

    saved = SavedReport(owner_id=owner_id, report_id=f'custom-{table}', name=name, data=json.dumps(data))
    db.session.add(saved)
    db.session.commit()
    current_app.logger.info("Custom report '%s' saved for %s with %d rows", name, owner_id, len(data['rows']))
    return ActionResult.ok(name, data=saved.to_dict(include_data=True))
