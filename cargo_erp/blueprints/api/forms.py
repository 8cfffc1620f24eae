# cargo_erp/blueprints/api/forms.py

from flask_wtf import FlaskForm
from wtforms import StringField
from wtforms.validators import DataRequired, Length, Optional


class BusinessSettingsForm(FlaskForm):
    """
    Se llena desde JSON (Flask-WTF lee request.get_json()). Sin CSRF: es API.
    """
    class Meta:
        csrf = False

    name = StringField("Empresa", validators=[DataRequired(), Length(max=120)])
    logo_url = StringField("Logo", validators=[Optional()])
    partner1 = StringField("Partner 1", validators=[DataRequired(), Length(max=120)])
    partner2 = StringField("Partner 2", validators=[DataRequired(), Length(max=120)])
    currency = StringField("Moneda", validators=[DataRequired(), Length(max=20)])
