from sqlalchemy import func

from fleet.exceptions import NotFound, ValidationError
from fleet.extensions import db
from fleet.models.people import Customer
from fleet.models.rental import Rental
from fleet.services.results import ActionResult, service_action


def _get_owned_customer(owner_id, customer_id):
    customer = Customer.query.filter_by(id=customer_id, owner_id=owner_id).first()
    if customer is None:
        raise NotFound("Customer not found")
    return customer


def _rental_count(owner_id, name):
    return Rental.query.filter_by(owner_id=owner_id, customer_name=name).count()


@service_action('adding customer')
def add_customer(owner_id, name, email=None, phone=None, address=None, notes=None):
    if not name:
        raise ValidationError('Customer name is required')
    customer = Customer(owner_id=owner_id, name=name, email=email, phone=phone, address=address, notes=notes)
    db.session.add(customer)
    db.session.commit()
    return ActionResult.ok('Customer added successfully', data=customer.to_dict())


@service_action('updating customer')
def update_customer(owner_id, customer_id, name, email=None, phone=None, address=None, notes=None):
    if not customer_id or not name:
        raise ValidationError('Customer ID and name are required')
    customer = _get_owned_customer(owner_id, customer_id)
    # Past rentals keep the snapshot they were booked with
    customer.name = name
    customer.email = email
    customer.phone = phone
    customer.address = address
    customer.notes = notes
    db.session.commit()
    return ActionResult.ok('Customer updated successfully', data=customer.to_dict())


@service_action('deleting customer')
def delete_customer(owner_id, customer_id):
    if not customer_id:
        raise ValidationError('Customer ID is required')
    customer = _get_owned_customer(owner_id, customer_id)

    count = _rental_count(owner_id, customer.name)
    if count > 0:
        raise ValidationError(
            f"Cannot delete customer with {count} rental records. "
            "Please delete the rentals first or update them to use a different customer."
        )

    db.session.delete(customer)
    db.session.commit()
    return ActionResult.ok('Customer deleted successfully')


def get_customers(owner_id):
    """Owner's customers by name, each with the number of rentals under that name."""
    if not owner_id:
        return []
    counts = dict(
        db.session.query(Rental.customer_name, func.count(Rental.id))
        .filter(Rental.owner_id == owner_id)
        .group_by(Rental.customer_name)
        .all()
    )
    customers = Customer.query.filter_by(owner_id=owner_id).order_by(Customer.name.asc()).all()
    return [c.to_dict(rental_count=counts.get(c.name, 0)) for c in customers]


def get_customer_by_id(owner_id, customer_id):
    if not owner_id or not customer_id:
        return None
    return Customer.query.filter_by(id=customer_id, owner_id=owner_id).first()


def get_customer_rentals(owner_id, customer_id):
    customer = get_customer_by_id(owner_id, customer_id)
    if customer is None:
        return []
    return Rental.query.filter_by(owner_id=owner_id, customer_name=customer.name) \
        .order_by(Rental.start_date.desc()).all()
