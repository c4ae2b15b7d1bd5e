import pytest

from blockbuilder.render import FormRenderer
from blockbuilder.schema import FieldSchema, FormSchema

LINKS = {
    "name": "links",
    "label": "Links",
    "type": "repeater",
    "item_title": "Link",
    "collapsible": True,
    "item_fields": [
        {"name": "label", "label": "Label", "rules": [{"type": "required"}]},
        {"name": "url", "label": "URL", "type": "url", "rules": [{"type": "required"}]},
    ],
}

CARDS = {
    "name": "cards",
    "label": "Cards",
    "type": "repeater",
    "item_title": "Card",
    "collapsible": True,
    "max_items": 3,
    "rules": [{"type": "required"}],
    "item_fields": [
        {"name": "title", "label": "Title", "rules": [{"type": "required"}]},
        {"name": "text", "label": "Text", "type": "textarea"},
        LINKS,
    ],
}


def make_field(data: dict, **overrides) -> FieldSchema:
    return FieldSchema.model_validate({**data, **overrides})


@pytest.fixture
def cards_field() -> FieldSchema:
    return make_field(CARDS)


@pytest.fixture
def form_schema() -> FormSchema:
    return FormSchema.model_validate(
        {
            "title": "Card grid",
            "fields": [
                {"name": "title", "label": "Title", "rules": [{"type": "required"}]},
                {"name": "email", "label": "Email", "type": "email", "rules": [{"type": "email"}]},
                CARDS,
            ],
        }
    )


@pytest.fixture
def renderer() -> FormRenderer:
    return FormRenderer()


def card(title="Card", text="", links=None) -> dict:
    return {"title": title, "text": text, "links": links if links is not None else []}


def link(label="Docs", url="https://example.com") -> dict:
    return {"label": label, "url": url}
