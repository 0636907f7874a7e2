import copy

import pytest

from panel.schema import SchemaModel


SAMPLE_CONFIG = [
    {
        "group": "general",
        "groupdoc": "General settings",
        "elements": [
            {
                "name": "domain",
                "type": "text",
                "value": "https://vault.example.com",
                "default": "http://localhost",
                "editable": True,
                "doc": {"name": "Domain URL", "description": "Public URL of the server"},
            },
            {
                "name": "signups_allowed",
                "type": "checkbox",
                "value": True,
                "default": True,
                "editable": True,
                "doc": {"name": "Allow new signups", "description": ""},
            },
            {
                "name": "invitation_org_name",
                "type": "text",
                "value": "",
                "default": "Vault",
                "editable": True,
                "doc": {"name": "Invitation organization name", "description": ""},
            },
            {
                "name": "web_vault_enabled",
                "type": "checkbox",
                "value": True,
                "editable": False,
                "doc": {"name": "Web vault enabled", "description": ""},
            },
        ],
    },
    {
        "group": "smtp",
        "groupdoc": "SMTP Email Settings",
        "grouptoggle": "_enable_smtp",
        "elements": [
            {
                "name": "_enable_smtp",
                "type": "checkbox",
                "value": True,
                "editable": True,
                "doc": {"name": "Enabled", "description": ""},
            },
            {
                "name": "smtp_host",
                "type": "text",
                "value": "mail.example.com",
                "editable": True,
                "doc": {"name": "Host", "description": ""},
            },
            {
                "name": "smtp_port",
                "type": "number",
                "value": 587,
                "default": 587,
                "editable": True,
                "doc": {"name": "Port", "description": ""},
            },
            {
                "name": "smtp_password",
                "type": "password",
                "value": "hunter2",
                "editable": True,
                "doc": {"name": "Password", "description": ""},
            },
            {
                "name": "smtp_explicit_tls",
                "type": "checkbox",
                "value": True,
                "editable": True,
                "doc": {"name": "Explicit TLS", "description": ""},
            },
        ],
    },
    {
        "group": "folders",
        "elements": [
            {
                "name": "data_folder",
                "type": "text",
                "value": "data",
                "editable": False,
                "doc": {"name": "Data folder", "description": "Main data folder"},
            },
            {
                "name": "admin_token",
                "type": "password",
                "value": "s3cret",
                "editable": False,
                "doc": {"name": "Admin token", "description": ""},
            },
            {
                "name": "log_level",
                "type": "text",
                "value": "info",
                "editable": True,
                "doc": {"name": "Log level", "description": ""},
            },
        ],
    },
]


@pytest.fixture
def sample_payload():
    return copy.deepcopy(SAMPLE_CONFIG)


@pytest.fixture
def schema(sample_payload):
    return SchemaModel.from_payload(sample_payload)
