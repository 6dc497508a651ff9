from flask_wtf import FlaskForm
from wtforms import (StringField, IntegerField, DecimalField, TextAreaField, SelectField, SelectMultipleField,
                     PasswordField, DateField)
from wtforms.validators import DataRequired, InputRequired, Email, EqualTo, Length, Optional, NumberRange

from fleet.services.driver_service import DRIVER_STATUSES
from fleet.services.maintenance_service import MAINTENANCE_STATUSES
from fleet.services.rental_service import RENTAL_STATUSES
from fleet.services.report_service import CUSTOM_TABLES


class ApiForm(FlaskForm):
    """Base for JSON endpoints: the body is read as form data, session login replaces CSRF tokens."""

    class Meta:
        csrf = False


def _choices(values):
    return [(value, value.replace('_', ' ').title()) for value in values]


# --- Accounts ---
class RegistrationForm(ApiForm):
    username = StringField('Username', validators=[DataRequired(), Length(max=255)])
    email = StringField('Email', validators=[DataRequired(), Email()])
    password = PasswordField('Password', validators=[DataRequired(), Length(min=8)])
    password2 = PasswordField('Confirm Password', validators=[DataRequired(), EqualTo('password')])


class LoginForm(ApiForm):
    email = StringField('Email', validators=[DataRequired(), Email()])
    password = PasswordField('Password', validators=[DataRequired()])


class TokenForm(ApiForm):
    token = StringField('Token', validators=[DataRequired()])


# --- Fleet ---
class VehicleForm(ApiForm):
    make = StringField('Make', validators=[DataRequired(), Length(max=255)])
    model = StringField('Model', validators=[DataRequired(), Length(max=255)])
    year = IntegerField('Year', validators=[Optional(), NumberRange(min=1900, max=2100)])
    license_plate = StringField('License Plate', validators=[DataRequired(), Length(max=255)])


class DriverForm(ApiForm):
    first_name = StringField('First Name', validators=[DataRequired()])
    last_name = StringField('Last Name', validators=[DataRequired()])
    license_number = StringField('License Number', validators=[DataRequired()])
    license_expiry = DateField('License Expiry', format='%Y-%m-%d', validators=[DataRequired()])
    contact_number = StringField('Contact Number', validators=[Optional()])
    email = StringField('Email', validators=[Optional(), Email()])
    status = SelectField('Status', choices=_choices(DRIVER_STATUSES), default='active')


class DriverStatusForm(ApiForm):
    status = SelectField('Status', choices=_choices(DRIVER_STATUSES), validators=[DataRequired()])


class CustomerForm(ApiForm):
    name = StringField('Name', validators=[DataRequired(), Length(max=255)])
    email = StringField('Email', validators=[Optional(), Email()])
    phone = StringField('Phone', validators=[Optional(), Length(max=50)])
    address = TextAreaField('Address', validators=[Optional()])
    notes = TextAreaField('Notes', validators=[Optional()])


class MaintenanceForm(ApiForm):
    vehicle_id = IntegerField('Vehicle', validators=[InputRequired()])
    service_type = StringField('Service Type', validators=[DataRequired()])
    description = TextAreaField('Description', validators=[Optional()])
    date_performed = DateField('Date Performed', format='%Y-%m-%d', validators=[Optional()])
    next_due_date = DateField('Next Due Date', format='%Y-%m-%d', validators=[DataRequired()])
    cost = DecimalField('Cost', places=2, validators=[Optional(), NumberRange(min=0)])
    status = SelectField('Status', choices=_choices(MAINTENANCE_STATUSES), default='scheduled')
    service_provider = StringField('Service Provider', validators=[Optional()])
    notes = TextAreaField('Notes', validators=[Optional()])


# --- Rentals ---
class RentalForm(ApiForm):
    vehicle_id = IntegerField('Vehicle', validators=[InputRequired()])
    customer_name = StringField('Customer Name', validators=[DataRequired(), Length(max=255)])
    customer_email = StringField('Customer Email', validators=[Optional(), Email()])
    customer_phone = StringField('Customer Phone', validators=[Optional(), Length(max=50)])
    start_date = DateField('Start Date', format='%Y-%m-%d', validators=[DataRequired()])
    end_date = DateField('End Date', format='%Y-%m-%d', validators=[DataRequired()])
    daily_rate = DecimalField('Daily Rate', validators=[InputRequired()])
    notes = TextAreaField('Notes', validators=[Optional()])


class RentalEditForm(ApiForm):
    start_date = DateField('Start Date', format='%Y-%m-%d', validators=[DataRequired()])
    end_date = DateField('End Date', format='%Y-%m-%d', validators=[DataRequired()])
    daily_rate = DecimalField('Daily Rate', validators=[InputRequired()])
    status = SelectField('Status', choices=_choices(RENTAL_STATUSES), validators=[Optional()])
    notes = TextAreaField('Notes', validators=[Optional()])


class RentalStatusForm(ApiForm):
    status = SelectField('Status', choices=_choices(RENTAL_STATUSES), validators=[DataRequired()])


class CompleteRentalForm(ApiForm):
    actual_end_date = DateField('Actual End Date', format='%Y-%m-%d', validators=[Optional()])
    notes = TextAreaField('Notes', validators=[Optional()])


# --- Reports ---
class SavedReportForm(ApiForm):
    report_id = StringField('Report', validators=[DataRequired()])
    name = StringField('Name', validators=[Optional(), Length(max=255)])


class CustomReportForm(ApiForm):
    """Table, columns and name; the filter list is read from the JSON body as-is."""
    table = SelectField('Table', choices=_choices(CUSTOM_TABLES), validators=[DataRequired()])
    columns = SelectMultipleField('Columns', validators=[DataRequired()], validate_choice=False,
                                  choices=sorted({c for _, allowed in CUSTOM_TABLES.values() for c in allowed}))
    name = StringField('Report Name', validators=[DataRequired(), Length(max=255)])
