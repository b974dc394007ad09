"""
ornasync/guide_forms.py -- Parse and build the guide's admin HTML forms.

The guide is a Django admin.  Reading an entity means scraping its change
page into ``(field, value)`` pairs; writing it means POSTing the same pairs
back.  This module holds the HTML side of both directions:

    parse_form         change page -> ParsedForm (pairs + csrf token)
    parse_list         changelist page -> rows + total entry count
    parse_post_errors  re-displayed form after a failed POST -> error
    record_from_form   ParsedForm -> AdminItem / AdminMonster / ...
    record_to_form     record -> pairs ready to be urlencoded

Usage:
    from ornasync.guide_forms import parse_form, record_from_form, ITEM_FORM

    form = parse_form(html, ITEM_FORM)
    item = record_from_form(ITEM_FORM, form, item_id)
"""

from __future__ import annotations

from dataclasses import dataclass, field

from bs4 import BeautifulSoup

from ornasync.errors import (
    ExtraField,
    GuidePostFormError,
    HTMLParsingError,
    InvalidField,
    MissingField,
)
from ornasync.models.guide import (
    AdminItem,
    AdminMonster,
    AdminPet,
    AdminSkill,
    CostType,
    GuideListEntry,
)


@dataclass
class ParsedForm:
    """Fields of an admin form, in page order, plus its csrf token.

    Multi-valued fields (selects) appear once per selected value; unchecked
    checkboxes do not appear at all, exactly as a browser would submit them.
    """

    fields: list[tuple[str, str]] = field(default_factory=list)
    csrfmiddlewaretoken: str = ""


# ---------------------------------------------------------------------------
# Form layouts
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FormLayout:
    """How one entity kind maps between its admin form and its record.

    ``fields`` maps each form field name to ``(attribute, conversion)``
    where conversion is one of ``str``, ``int``, ``float``, ``bool``
    (checkbox), ``opt`` (optional select), ``list`` (multi-select) or
    ``cost_type``.
    """

    entity: str
    root: str
    record: type
    fields: dict


def _layout(entity, root, record, pairs):
    fields = {}
    for name, conversion in pairs:
        attr = {"codex": "codex_uri", "type": "type_"}.get(name, name)
        fields[name] = (attr, conversion)
    return FormLayout(entity, root, record, fields)


ITEM_FORM = _layout("item", "#item_form", AdminItem, [
    ("codex", "str"), ("name", "str"), ("tier", "int"), ("type", "int"),
    ("image_name", "str"), ("description", "str"), ("notes", "str"),
    ("hp", "int"), ("hp_affected_by_quality", "bool"),
    ("mana", "int"), ("mana_affected_by_quality", "bool"),
    ("attack", "int"), ("attack_affected_by_quality", "bool"),
    ("magic", "int"), ("magic_affected_by_quality", "bool"),
    ("defense", "int"), ("defense_affected_by_quality", "bool"),
    ("resistance", "int"), ("resistance_affected_by_quality", "bool"),
    ("dexterity", "int"), ("dexterity_affected_by_quality", "bool"),
    ("ward", "int"), ("ward_affected_by_quality", "bool"),
    ("crit", "int"), ("crit_affected_by_quality", "bool"),
    ("foresight", "int"), ("view_distance", "int"),
    ("follower_stats", "int"), ("follower_act", "int"),
    ("status_infliction", "int"), ("status_protection", "int"),
    ("mana_saver", "int"), ("has_slots", "bool"),
    ("base_adornment_slots", "int"), ("rarity", "str"), ("element", "opt"),
    ("equipped_by", "list"), ("two_handed", "bool"),
    ("orn_bonus", "float"), ("gold_bonus", "float"), ("drop_bonus", "float"),
    ("spawn_bonus", "float"), ("exp_bonus", "float"),
    ("boss", "bool"), ("arena", "bool"), ("category", "opt"),
    ("causes", "list"), ("cures", "list"), ("gives", "list"),
    ("prevents", "list"), ("materials", "list"), ("price", "int"),
    ("ability", "opt"), ("potion_effectiveness", "int"),
])

MONSTER_FORM = _layout("monster", "#monster_form", AdminMonster, [
    ("codex", "str"), ("name", "str"), ("tier", "int"), ("family", "opt"),
    ("image_name", "str"), ("boss", "bool"), ("level", "int"), ("hp", "int"),
    ("notes", "str"), ("spawns", "list"), ("weak_to", "list"),
    ("resistant_to", "list"), ("immune_to", "list"),
    ("immune_to_status", "list"), ("vulnerable_to_status", "list"),
    ("drops", "list"), ("skills", "list"),
])

SKILL_FORM = _layout("skill", "#skill_form", AdminSkill, [
    ("codex", "str"), ("name", "str"), ("tier", "int"), ("type", "int"),
    ("is_magic", "bool"), ("mana_cost", "int"), ("description", "str"),
    ("element", "opt"), ("offhand", "bool"), ("cost", "int"),
    ("bought", "bool"), ("skill_power", "float"), ("strikes", "int"),
    ("modifier_min", "float"), ("modifier_max", "float"), ("extra", "str"),
    ("buffed_by", "list"), ("causes", "list"), ("cures", "list"),
    ("gives", "list"),
])

PET_FORM = _layout("pet", "#pet_form", AdminPet, [
    ("codex", "str"), ("name", "str"), ("tier", "int"),
    ("image_name", "str"), ("description", "str"),
    ("attack", "int"), ("heal", "int"), ("buff", "int"), ("debuff", "int"),
    ("spell", "int"), ("protect", "int"), ("cost", "int"),
    ("cost_type", "cost_type"), ("limited", "bool"),
    ("limited_details", "str"), ("skills", "list"),
])

# Forms with no field we read; only their csrf token matters.
SPAWN_ROOT = "#spawn_form"
STATUS_EFFECT_ROOT = "#statuseffect_form"

COST_TYPE_VALUES = {CostType.ORN: "1", CostType.GOLD: "2"}


# ---------------------------------------------------------------------------
# HTML parsing
# ---------------------------------------------------------------------------

def _select_root(soup, root: str, page: str):
    node = soup.select_one(root)
    if node is None:
        raise HTMLParsingError(f"No node {root} in {page}")
    return node


def _field_values(node, name: str) -> list[str]:
    """Values a browser would submit for the form control *node*."""
    if node.name == "input":
        input_type = node.get("type", "text")
        if input_type in ("text", "number"):
            return [node.get("value", "")]
        if input_type == "checkbox":
            return ["on"] if node.has_attr("checked") else []
        raise HTMLParsingError(f"Unknown input type {input_type!r} for field {name}")
    if node.name == "select":
        return [
            option.get("value", "")
            for option in node.find_all("option")
            if option.has_attr("selected")
        ]
    if node.name == "textarea":
        # The HTML parser keeps the newline Django emits after <textarea>.
        text = node.get_text()
        return [text[1:] if text.startswith("\n") else text]
    raise HTMLParsingError(f"Unknown node tag for field {name}: {node.name}")


def parse_form(html: str, layout_or_root, field_names=None) -> ParsedForm:
    """Extract the fields of an admin change/add page.

    Parameters
    ----------
    html : str
        The page.
    layout_or_root : FormLayout or str
        Either the layout of an entity form, whose every field is read, or
        a bare CSS selector of the form root.
    field_names : iterable of str, optional
        Fields to read when a bare selector is given.

    Raises
    ------
    HTMLParsingError
        If the form root or the csrf token is missing, or a control has an
        unexpected type.
    MissingField
        If one of the requested fields is not on the page.
    """
    if isinstance(layout_or_root, FormLayout):
        root, entity = layout_or_root.root, layout_or_root.entity
        field_names = list(layout_or_root.fields)
    else:
        root, entity = layout_or_root, layout_or_root.lstrip("#")
        field_names = list(field_names or [])

    soup = BeautifulSoup(html, "html.parser")
    form = _select_root(soup, root, "guide form")

    parsed = ParsedForm()
    for name in field_names:
        node = form.select_one(f"#id_{name}")
        if node is None:
            raise MissingField(entity, name)
        parsed.fields.extend((name, value) for value in _field_values(node, name))

    token = form.select_one('[name="csrfmiddlewaretoken"]')
    if token is None or not token.get("value"):
        raise HTMLParsingError(f"No csrfmiddlewaretoken in {root}")
    parsed.csrfmiddlewaretoken = token["value"]
    return parsed


def _entry_from_row(row) -> GuideListEntry:
    link = row.find("a")
    if link is None or not link.get("href"):
        raise HTMLParsingError("Changelist row without a link")
    url = link["href"].split("?", 1)[0]
    if not url.endswith("/change/"):
        raise HTMLParsingError(f'Link URL does not end with "/change/": {url}')
    segment = url[: -len("/change/")].rstrip("/").rsplit("/", 1)[-1]
    try:
        entry_id = int(segment)
    except ValueError as exc:
        raise HTMLParsingError(f"Failed to parse id from {url}") from exc
    return GuideListEntry(id=entry_id, name=link.get_text(strip=True))


def _paginator_count(text: str) -> int:
    # "1 2 ... 12 1134 items": numbers (and ellipses) run up to the total.
    count = None
    for token in text.split():
        if token == "...":
            count = 0
            continue
        try:
            count = int(token)
        except ValueError:
            break
    if count is None:
        raise HTMLParsingError(f"Failed to get entry count from: {text.strip()}")
    return count


def parse_list(html: str) -> tuple[list[GuideListEntry], int]:
    """Parse one changelist page.

    Returns
    -------
    (list of GuideListEntry, int)
        The rows of this page and the total number of entries across all
        pages, according to the paginator.
    """
    soup = BeautifulSoup(html, "html.parser")
    table = _select_root(soup, "#result_list", "changelist")
    body = table.find("tbody")
    if body is None:
        raise HTMLParsingError("No tbody in #result_list")
    paginator = _select_root(soup, ".paginator", "changelist")

    entries = [_entry_from_row(row) for row in body.find_all("tr")]
    return entries, _paginator_count(paginator.get_text(" "))


def parse_post_errors(url: str, html: str, root: str) -> GuidePostFormError | None:
    """Inspect the response to a POST.

    Django answers a successful save with the changelist; a rejected one
    re-displays the form with error notes.  Returns the error to raise, or
    ``None`` when the form root is absent (the save went through).
    """
    soup = BeautifulSoup(html, "html.parser")
    form = soup.select_one(root)
    if form is None:
        return None

    note = form.select_one(".errornote")
    generic = note.get_text(" ", strip=True) if note is not None else "form re-displayed"

    errors = []
    for node in form.select(".errors"):
        fields = [
            cls[len("field-"):] for cls in node.get("class", []) if cls.startswith("field-")
        ]
        messages = [li.get_text(" ", strip=True) for li in node.select(".errorlist li")]
        errors.extend(f"{name}: {message}" for name in fields for message in messages)
    return GuidePostFormError(url, generic, errors)


# ---------------------------------------------------------------------------
# Record conversion
# ---------------------------------------------------------------------------

def _convert(layout: FormLayout, name: str, conversion: str, value: str):
    try:
        if conversion == "int" or conversion == "list":
            return int(value)
        if conversion == "float":
            return float(value)
        if conversion == "opt":
            return int(value) if value else None
    except ValueError as exc:
        raise InvalidField(layout.entity, name, value, str(exc)) from exc
    if conversion == "bool":
        return value == "on"
    if conversion == "cost_type":
        return CostType.ORN if value == "1" else CostType.GOLD
    return value


def record_from_form(layout: FormLayout, form: ParsedForm, record_id: int):
    """Build the record of *layout* from a parsed form.

    Fields absent from the form take their "unset" value: unchecked
    checkboxes are false, multi-selects empty and optional selects ``None``.

    Raises
    ------
    ExtraField
        If the form carries a field the layout does not know.
    InvalidField
        If a numeric field does not parse.
    """
    values = {"id": record_id}
    for attr, conversion in layout.fields.values():
        if conversion == "bool":
            values[attr] = False
        elif conversion == "list":
            values[attr] = []
        elif conversion == "opt":
            values[attr] = None

    for name, value in form.fields:
        if name not in layout.fields:
            raise ExtraField(layout.entity, name, value)
        attr, conversion = layout.fields[name]
        converted = _convert(layout, name, conversion, value)
        if conversion == "list":
            values[attr].append(converted)
        else:
            values[attr] = converted
    return layout.record.model_validate(values)


def record_to_form(layout: FormLayout, record) -> list[tuple[str, str]]:
    """Serialise *record* into the pairs its admin form expects."""
    pairs = []
    for name, (attr, conversion) in layout.fields.items():
        value = getattr(record, attr)
        if conversion == "bool":
            if value:
                pairs.append((name, "on"))
        elif conversion == "list":
            pairs.extend((name, str(entry)) for entry in value)
        elif conversion == "opt":
            pairs.append((name, "" if value is None else str(value)))
        elif conversion == "cost_type":
            pairs.append((name, COST_TYPE_VALUES[CostType(value)]))
        else:
            pairs.append((name, str(value)))
    return pairs


LAYOUTS = {
    "item": ITEM_FORM,
    "monster": MONSTER_FORM,
    "skill": SKILL_FORM,
    "pet": PET_FORM,
}
