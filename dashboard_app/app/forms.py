from __future__ import annotations
from flask import has_request_context, request
from flask_wtf import FlaskForm
from werkzeug.datastructures import ImmutableMultiDict
from wtforms import StringField, PasswordField, IntegerField
from wtforms.validators import AnyOf, DataRequired, Email, InputRequired, Length, StopValidation
from .models import INVITABLE_ROLES, ROLES


class JsonString:
    """Stop validation when a JSON body supplied a non-string value for a text field."""

    def __init__(self, message: str | None = None):
        self.message = message

    def __call__(self, form, field):
        if field.data is not None and not isinstance(field.data, str):
            field.errors[:] = []
            raise StopValidation(self.message or "Invalid value")


class JsonIntegerField(IntegerField):
    """IntegerField that reports null or structured JSON values as invalid input."""

    def process_formdata(self, valuelist):
        if valuelist and (valuelist[0] is None or isinstance(valuelist[0], (dict, list, bool))):
            self.data = None
            raise ValueError(self.gettext("Not a valid integer value."))
        super().process_formdata(valuelist)


class ApiForm(FlaskForm):
    """Base for forms fed from a JSON body; the API blueprints are CSRF exempt."""

    class Meta:
        csrf = False

        def wrap_formdata(self, form, formdata):
            # a JSON body that is not an object carries no fields
            if has_request_context() and request.is_json and not isinstance(request.get_json(silent=True), dict):
                return ImmutableMultiDict()
            return super().wrap_formdata(form, formdata)

    def first_error(self) -> str:
        for field_errors in self.errors.values():
            if field_errors:
                return str(field_errors[0])
        return "Invalid request"


class RegisterForm(ApiForm):
    email = StringField("email", validators=[JsonString("Invalid email address"), DataRequired(), Email(), Length(max=255)])
    name = StringField("name", validators=[JsonString("Invalid name"), DataRequired(), Length(min=2, max=255)])
    password = PasswordField("password", validators=[JsonString("Invalid password"), DataRequired(), Length(min=8)])


class LoginForm(ApiForm):
    email = StringField("email", validators=[JsonString("Invalid email address"), DataRequired(), Email(), Length(max=255)])
    password = PasswordField("password", validators=[JsonString("Invalid password"), DataRequired()])


class OrganizationForm(ApiForm):
    name = StringField(
        "name",
        validators=[
            JsonString("Invalid organization name"),
            DataRequired(),
            Length(min=2, max=128, message="Organization name must be at least 2 characters"),
        ],
    )


class InviteMemberForm(ApiForm):
    email = StringField(
        "email",
        validators=[
            JsonString("Invalid email address"),
            DataRequired(message="Email and role are required"),
            Email(message="Invalid email address"),
            Length(max=255),
        ],
    )
    role = StringField(
        "role",
        validators=[
            JsonString("Invalid role"),
            DataRequired(message="Email and role are required"),
            AnyOf(INVITABLE_ROLES, message="Invalid role"),
        ],
    )


class UpdateRoleForm(ApiForm):
    memberId = JsonIntegerField("memberId", validators=[InputRequired(message="Member ID and new role are required")])
    newRole = StringField(
        "newRole",
        validators=[
            JsonString("Invalid role"),
            DataRequired(message="Member ID and new role are required"),
            AnyOf(ROLES, message="Invalid role"),
        ],
    )


class RemoveMemberForm(ApiForm):
    memberId = JsonIntegerField("memberId", validators=[InputRequired(message="Member ID is required")])


class CancelInvitationForm(ApiForm):
    invitationId = JsonIntegerField("invitationId", validators=[InputRequired(message="Invitation ID is required")])
