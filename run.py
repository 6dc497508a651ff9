import datetime

from fleet import create_app
from fleet.extensions import db
from fleet.models import User, EventLog, Vehicle, MaintenanceRecord, Rental, Driver, Customer, SavedReport
from fleet.services import customer_service, driver_service, maintenance_service, rental_service, vehicle_service
from fleet.services.identity_service import new_local_owner_id
from fleet.services.rental_service import CustomerSnapshot

app = create_app()


@app.shell_context_processor
def make_shell_context():
    return {
        'db': db,
        'User': User,
        'EventLog': EventLog,
        'Vehicle': Vehicle,
        'MaintenanceRecord': MaintenanceRecord,
        'Rental': Rental,
        'Driver': Driver,
        'Customer': Customer,
        'SavedReport': SavedReport,
    }


@app.cli.command('init-db')
def init_db_command():
    """Creates every table that does not exist yet."""
    db.create_all()
    print('Database tables created.')


@app.cli.command('seed-db')
def seed_db_command():
    """Adds a demo owner with a small fleet."""
    db.create_all()
    email = 'demo@fleet.example.com'
    owner = User.query.filter_by(email=email).first()
    if owner is None:
        owner = User(user_id=new_local_owner_id(), username='Demo Owner', email=email)
        owner.set_password('fleet-demo')
        db.session.add(owner)
        db.session.commit()
    owner_id = owner.user_id
    today = datetime.date.today()

    vehicles = [
        vehicle_service.add_vehicle(owner_id, 'Toyota', 'Corolla', today.year - 2, 'FLT-001'),
        vehicle_service.add_vehicle(owner_id, 'Ford', 'Transit', today.year - 4, 'FLT-002'),
        vehicle_service.add_vehicle(owner_id, 'Honda', 'Civic', today.year - 1, 'FLT-003'),
    ]
    vehicle_ids = [result.data['id'] for result in vehicles if result]

    driver_service.add_driver(owner_id, 'Ana', 'Silva', 'DL-1001', today + datetime.timedelta(days=400),
                              contact_number='555-0101')
    driver_service.add_driver(owner_id, 'Bruno', 'Costa', 'DL-1002', today + datetime.timedelta(days=20),
                              status='on_leave')

    customer_service.add_customer(owner_id, 'Carla Mendes', email='carla@example.com', phone='555-0199')
    customer_service.add_customer(owner_id, 'Diego Rocha', email='diego@example.com')

    if vehicle_ids:
        rental_service.create_rental(owner_id, vehicle_ids[0], CustomerSnapshot('Carla Mendes', 'carla@example.com'),
                                     today, today + datetime.timedelta(days=3), '50.00')
        maintenance_service.create_maintenance_record(owner_id, vehicle_ids[-1], 'Oil Change',
                                                      today + datetime.timedelta(days=10), 'scheduled',
                                                      cost='45.00', service_provider='Quick Lube')

    print(f'Database seeded. Log in as {email} / fleet-demo')
