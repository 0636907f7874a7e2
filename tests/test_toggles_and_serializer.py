import pytest

from panel.errors import SchemaError, ValidationError
from panel.groups import render_editable_groups, render_read_only_section
from panel.schema import FieldType, SchemaModel
from panel.serializer import serialize
from panel.toggles import LiveForm, ToggleController


def _form(schema, include_read_only=False):
    sections = render_editable_groups(schema)
    if include_read_only:
        sections.append(render_read_only_section(schema))
    return LiveForm.from_sections(sections)


def test_serialize_right_after_render(schema):
    data = serialize(_form(schema).live_fields())
    assert data["signups_allowed"] is True
    assert data["invitation_org_name"] is None
    assert data["smtp_port"] == 587
    assert isinstance(data["smtp_port"], int)
    assert data["smtp_password"] == "hunter2"
    assert data["domain"] == "https://vault.example.com"


def test_number_field_is_sent_as_number(schema):
    form = _form(schema)
    form.set_value("smtp_port", "42")
    assert serialize(form.live_fields())["smtp_port"] == 42
    form.set_value("smtp_port", " 2.5 ")
    assert serialize(form.live_fields())["smtp_port"] == 2.5
    form.set_value("smtp_port", "")
    assert serialize(form.live_fields())["smtp_port"] is None


@pytest.mark.parametrize("raw", ["abc", "nan", "inf", "1_000", "4 2"])
def test_non_numeric_number_blocks_whole_save(schema, raw):
    form = _form(schema)
    form.set_value("smtp_port", raw)
    with pytest.raises(ValidationError) as exc:
        serialize(form.live_fields())
    assert exc.value.field == "smtp_port"


def test_read_only_controls_never_reach_payload(schema):
    data = serialize(_form(schema, include_read_only=True).live_fields())
    for element in schema.read_only_elements():
        assert element.name not in data
    assert "log_level" not in data


def test_serialize_plain_triples():
    data = serialize(
        [
            ("flag", FieldType.CHECKBOX, True),
            ("note", FieldType.TEXT, ""),
            ("limit", FieldType.NUMBER, "42"),
            (None, FieldType.TEXT, "ignored"),
        ]
    )
    assert data == {"flag": True, "note": None, "limit": 42}


def test_duplicate_names_last_write_wins():
    data = serialize([("a", FieldType.TEXT, "first"), ("a", FieldType.TEXT, "second")])
    assert data == {"a": "second"}


def test_bindings_built_from_schema(schema):
    controller = ToggleController.from_schema(schema)
    assert controller.to_dict() == [
        {
            "group": "smtp",
            "toggle": "_enable_smtp",
            "dependents": ["smtp_host", "smtp_port", "smtp_password", "smtp_explicit_tls"],
        }
    ]


def test_unchecking_master_disables_and_clears(schema):
    form = _form(schema)
    ToggleController.from_schema(schema).attach(form)

    form.set_checked("_enable_smtp", False)

    for name in ("smtp_host", "smtp_port", "smtp_password", "smtp_explicit_tls"):
        assert form.control(name).disabled is True
    assert form.control("smtp_host").value == ""
    assert form.control("smtp_port").value == ""
    assert form.control("smtp_explicit_tls").checked is False
    assert form.control("_enable_smtp").disabled is False
    assert form.control("domain").value == "https://vault.example.com"


def test_rechecking_master_does_not_restore_values(schema):
    form = _form(schema)
    ToggleController.from_schema(schema).attach(form)

    form.set_checked("_enable_smtp", False)
    form.set_checked("_enable_smtp", True)

    assert form.control("smtp_host").disabled is False
    assert form.control("smtp_host").value == ""
    assert form.control("smtp_password").value == ""
    data = serialize(form.live_fields())
    assert data["smtp_host"] is None
    assert data["smtp_port"] is None
    assert data["smtp_explicit_tls"] is False


def test_initial_state_follows_rendered_toggle_without_clearing(sample_payload):
    sample_payload[1]["elements"][0]["value"] = False
    schema = SchemaModel.from_payload(sample_payload)
    form = _form(schema)
    ToggleController.from_schema(schema).attach(form)

    assert form.control("smtp_host").disabled is True
    assert form.control("smtp_host").value == "mail.example.com"
    assert form.control("_enable_smtp").disabled is False


def test_toggle_must_name_an_element_of_its_group(sample_payload):
    sample_payload[1]["grouptoggle"] = "missing"
    schema = SchemaModel.from_payload(sample_payload)
    with pytest.raises(SchemaError):
        ToggleController.from_schema(schema)


def test_toggle_must_be_an_editable_checkbox(sample_payload):
    sample_payload[1]["grouptoggle"] = "smtp_host"
    schema = SchemaModel.from_payload(sample_payload)
    with pytest.raises(SchemaError):
        ToggleController.from_schema(schema)


def test_submission_unchecking_master_clears_posted_values(schema):
    sections = render_editable_groups(schema)
    form = LiveForm.from_submission(
        sections,
        {
            "domain": "https://new.example.com",
            "smtp_host": "smtp.example.com",
            "smtp_port": "25",
            "smtp_password": "",
        },
    )
    ToggleController.from_schema(schema).reconcile(form, LiveForm.from_sections(sections))

    data = serialize(form.live_fields())
    assert data["domain"] == "https://new.example.com"
    assert data["signups_allowed"] is False
    assert data["_enable_smtp"] is False
    # master went from checked to unchecked
    assert data["smtp_host"] is None
    assert data["smtp_port"] is None


def test_submission_keeps_values_of_group_disabled_on_render(sample_payload):
    sample_payload[1]["elements"][0]["value"] = False
    schema = SchemaModel.from_payload(sample_payload)
    sections = render_editable_groups(schema)
    form = LiveForm.from_submission(sections, {"domain": "https://new.example.com"})
    ToggleController.from_schema(schema).reconcile(form, LiveForm.from_sections(sections))

    data = serialize(form.live_fields())
    assert data["_enable_smtp"] is False
    assert data["smtp_host"] == "mail.example.com"
    assert data["smtp_port"] == 587
    assert data["smtp_password"] == "hunter2"
    assert data["smtp_explicit_tls"] is True
    assert form.control("smtp_host").disabled is True


def test_submission_checking_master_uses_posted_values(sample_payload):
    sample_payload[1]["elements"][0]["value"] = False
    schema = SchemaModel.from_payload(sample_payload)
    sections = render_editable_groups(schema)
    form = LiveForm.from_submission(sections, {"_enable_smtp": "on", "smtp_host": "smtp.example.com"})
    ToggleController.from_schema(schema).reconcile(form, LiveForm.from_sections(sections))

    data = serialize(form.live_fields())
    assert data["_enable_smtp"] is True
    assert data["smtp_host"] == "smtp.example.com"
    assert data["smtp_port"] is None


def test_submission_with_master_checked_keeps_values(schema):
    sections = render_editable_groups(schema)
    form = LiveForm.from_submission(
        sections,
        {"_enable_smtp": "on", "smtp_host": "smtp.example.com", "smtp_port": "25", "smtp_explicit_tls": "on"},
    )
    ToggleController.from_schema(schema).reconcile(form, LiveForm.from_sections(sections))

    data = serialize(form.live_fields())
    assert data["_enable_smtp"] is True
    assert data["smtp_host"] == "smtp.example.com"
    assert data["smtp_port"] == 25
    assert data["smtp_explicit_tls"] is True
    assert data["smtp_password"] is None


def test_set_checked_rejects_text_controls(schema):
    form = _form(schema)
    with pytest.raises(TypeError):
        form.set_checked("domain", True)
