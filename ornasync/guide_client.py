"""
ornasync/guide_client.py -- HTTP client for the guide's Django admin.

Implements :class:`ornasync.capabilities.AdminGuide` on a ``requests``
session authenticated with the admin session cookie.  Entities are read by
scraping their change page and written by POSTing the same form back with
the page's csrf token.

Usage:
    from ornasync.guide_client import OrnaAdminGuide

    guide = OrnaAdminGuide("https://orna.guide", cookie="sessionid=...; csrftoken=...")
    item = guide.retrieve_item(42)
    item.description = "..."
    guide.save_item(item)
"""

from __future__ import annotations

import logging
import threading
import time
from urllib.parse import urlparse

import requests

from ornasync.errors import ResponseError, TransportError
from ornasync.guide_forms import (
    ITEM_FORM,
    MONSTER_FORM,
    PET_FORM,
    SKILL_FORM,
    SPAWN_ROOT,
    STATUS_EFFECT_ROOT,
    FormLayout,
    ParsedForm,
    parse_form,
    parse_list,
    parse_post_errors,
    record_from_form,
    record_to_form,
)
from ornasync.models.guide import (
    AdminItem,
    AdminMonster,
    AdminPet,
    AdminSkill,
    GuideListEntry,
    Spawn,
    Static,
    StaticEntry,
)

logger = logging.getLogger(__name__)

# Admin routes of each entity kind, relative to the guide base URL.
ENTITY_ROUTES = {
    "item": "/admin/items/item/",
    "monster": "/admin/monsters/monster/",
    "skill": "/admin/skills/skill/",
    "pet": "/admin/pets/pet/",
}

STATIC_ROUTES = {
    "spawns": "/admin/orna/spawn/",
    "item_categories": "/admin/items/category/",
    "item_types": "/admin/items/type/",
    "monster_families": "/admin/monsters/family/",
    "status_effects": "/admin/orna/statuseffect/",
    "elements": "/admin/items/element/",
    "equipped_bys": "/admin/items/equippedby/",
    "skill_types": "/admin/skills/skilltype/",
}


class OrnaAdminGuide:
    """Live :class:`~ornasync.capabilities.AdminGuide` over HTTP.

    Parameters
    ----------
    base_url : str
        Root of the guide, e.g. ``https://orna.guide``.
    cookie : str
        Raw ``Cookie`` header of a logged-in admin session.
    delay : float
        Minimum number of seconds between two requests.  ``0`` disables
        throttling.
    timeout : float
        Per-request timeout in seconds.
    debug_urls : bool
        Log every requested URL at INFO level.
    """

    def __init__(
        self,
        base_url: str,
        cookie: str = "",
        delay: float = 0.0,
        timeout: float = 30.0,
        debug_urls: bool = False,
        session: requests.Session | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.delay = delay
        self.timeout = timeout
        self.debug_urls = debug_urls
        self.session = session or requests.Session()
        if cookie:
            self.session.headers["Cookie"] = cookie
        parsed = urlparse(self.base_url)
        self._origin = f"{parsed.scheme}://{parsed.netloc}" if parsed.netloc else self.base_url
        self._throttle_lock = threading.Lock()
        self._last_request = 0.0

    # ------------------------------------------------------------------
    # 1. Transport
    # ------------------------------------------------------------------

    def _url(self, route: str) -> str:
        return f"{self.base_url}{route}"

    def _throttle(self) -> None:
        if self.delay <= 0:
            return
        with self._throttle_lock:
            wait = self._last_request + self.delay - time.monotonic()
            if wait > 0:
                time.sleep(wait)
            self._last_request = time.monotonic()

    def _get(self, url: str) -> str:
        """GET *url*, expecting a 200.

        Raises
        ------
        TransportError
            If the request itself fails.
        ResponseError
            If the guide answers anything but 200.
        """
        self._throttle()
        if self.debug_urls:
            logger.info("GET %s", url)
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as exc:
            raise TransportError(f"GET {url} failed: {exc}") from exc
        if response.status_code != 200:
            raise ResponseError("GET", url, response.status_code, response.text)
        return response.text

    def _post(self, url: str, form: ParsedForm, root: str) -> None:
        """POST *form* to *url* the way the admin page itself would.

        Raises
        ------
        TransportError, ResponseError
            On network failure or a non-2xx status.
        GuidePostFormError
            If the guide re-displayed the form with validation errors.
        """
        body = list(form.fields)
        body.append(("csrfmiddlewaretoken", form.csrfmiddlewaretoken))
        body.append(("_save", "Save"))
        headers = {
            "Referer": url,
            "Content-Type": "application/x-www-form-urlencoded",
            "Origin": self._origin,
        }

        self._throttle()
        if self.debug_urls:
            logger.info("POST %s", url)
        try:
            response = self.session.post(url, data=body, headers=headers, timeout=self.timeout)
        except requests.RequestException as exc:
            raise TransportError(f"POST {url} failed: {exc}") from exc
        if not 200 <= response.status_code < 300:
            raise ResponseError("POST", url, response.status_code, response.text)

        error = parse_post_errors(url, response.text, root)
        if error is not None:
            raise error

    def _list(self, route: str) -> list[GuideListEntry]:
        """Read every page of a changelist."""
        url = self._url(route)
        entries, total = parse_list(self._get(url))
        page = 1
        while len(entries) < total:
            rows, _ = parse_list(self._get(f"{url}?p={page}"))
            if not rows:
                logger.warning(
                    "Changelist %s stopped at %d of %d entries", url, len(entries), total
                )
                break
            entries.extend(rows)
            page += 1
        return entries

    # ------------------------------------------------------------------
    # 2. Generic entity operations
    # ------------------------------------------------------------------

    def _change_url(self, layout: FormLayout, entity_id: int) -> str:
        return self._url(f"{ENTITY_ROUTES[layout.entity]}{entity_id}/change/")

    def _retrieve(self, layout: FormLayout, entity_id: int):
        url = self._change_url(layout, entity_id)
        form = parse_form(self._get(url), layout)
        return record_from_form(layout, form, entity_id)

    def _save(self, layout: FormLayout, record) -> None:
        url = self._change_url(layout, record.id)
        token = parse_form(self._get(url), layout.root).csrfmiddlewaretoken
        form = ParsedForm(record_to_form(layout, record), token)
        self._post(url, form, layout.root)
        logger.debug("Saved %s #%d", layout.entity, record.id)

    def _add(self, root: str, route: str, fields: list[tuple[str, str]]) -> None:
        url = self._url(f"{route}add/")
        token = parse_form(self._get(url), root).csrfmiddlewaretoken
        self._post(url, ParsedForm(fields, token), root)

    def _add_record(self, layout: FormLayout, record) -> None:
        self._add(layout.root, ENTITY_ROUTES[layout.entity], record_to_form(layout, record))
        logger.debug("Added %s %r", layout.entity, record.name)

    # ------------------------------------------------------------------
    # 3. AdminGuide
    # ------------------------------------------------------------------

    def retrieve_item(self, item_id: int) -> AdminItem:
        return self._retrieve(ITEM_FORM, item_id)

    def save_item(self, item: AdminItem) -> None:
        self._save(ITEM_FORM, item)

    def add_item(self, item: AdminItem) -> None:
        self._add_record(ITEM_FORM, item)

    def list_items(self) -> list[GuideListEntry]:
        return self._list(ENTITY_ROUTES["item"])

    def retrieve_monster(self, monster_id: int) -> AdminMonster:
        return self._retrieve(MONSTER_FORM, monster_id)

    def save_monster(self, monster: AdminMonster) -> None:
        self._save(MONSTER_FORM, monster)

    def add_monster(self, monster: AdminMonster) -> None:
        self._add_record(MONSTER_FORM, monster)

    def list_monsters(self) -> list[GuideListEntry]:
        return self._list(ENTITY_ROUTES["monster"])

    def retrieve_skill(self, skill_id: int) -> AdminSkill:
        return self._retrieve(SKILL_FORM, skill_id)

    def save_skill(self, skill: AdminSkill) -> None:
        self._save(SKILL_FORM, skill)

    def add_skill(self, skill: AdminSkill) -> None:
        self._add_record(SKILL_FORM, skill)

    def list_skills(self) -> list[GuideListEntry]:
        return self._list(ENTITY_ROUTES["skill"])

    def retrieve_pet(self, pet_id: int) -> AdminPet:
        return self._retrieve(PET_FORM, pet_id)

    def save_pet(self, pet: AdminPet) -> None:
        self._save(PET_FORM, pet)

    def add_pet(self, pet: AdminPet) -> None:
        self._add_record(PET_FORM, pet)

    def list_pets(self) -> list[GuideListEntry]:
        return self._list(ENTITY_ROUTES["pet"])

    def list_static(self, resource: str) -> list[StaticEntry]:
        if resource not in STATIC_ROUTES:
            raise KeyError(f"Unknown static resource '{resource}'")
        entry_type = Spawn if resource == "spawns" else StaticEntry
        return [
            entry_type(id=entry.id, name=entry.name)
            for entry in self._list(STATIC_ROUTES[resource])
        ]

    def retrieve_static_resources(self) -> Static:
        return Static(**{resource: self.list_static(resource) for resource in Static.RESOURCES})

    def add_spawn(self, name: str) -> None:
        self._add(SPAWN_ROOT, STATIC_ROUTES["spawns"], [("description", name)])

    def add_status_effect(self, name: str) -> None:
        self._add(STATUS_EFFECT_ROOT, STATIC_ROUTES["status_effects"], [("name", name)])
