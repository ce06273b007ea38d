"""Pydantic models for application configuration settings."""

from pydantic import BaseModel


class SettingsRead(BaseModel):
    site_name: str
    public_registration_disabled: bool


class SettingsUpdate(BaseModel):
    site_name: str | None = None
    public_registration_disabled: bool | None = None
