"""
Map raw upstream records onto the uniform envelope.

Every normalizer is a pure function of one raw record: it returns an
envelope, or None when the record does not have the expected shape.
Malformed data never raises here.
"""

from typing import Dict, Any, Optional, List, Sequence
from datetime import datetime, timezone

from pydantic import ValidationError as PydanticValidationError

from ingestion.pagination import get_object_data
from ingestion.transformers.html import extract_text
from schemas.envelope import KissEnvelope
import logging

logger = logging.getLogger(__name__)

NAME_FIELDS = ("voornaam", "voorvoegselAchternaam", "achternaam")
META_FIELDS = ("function", "department", "skills")
DEFAULT_PAGE_TITLE = "Geen titel"


def join_strings(element: Any, names: Sequence[str]) -> str:
    """
    Join the non-blank string values of ``names`` with single spaces.

    Missing, blank and non-string values are skipped.
    """
    if not isinstance(element, dict):
        return ""
    values = []
    for name in names:
        value = element.get(name)
        if isinstance(value, str) and value.strip():
            values.append(value)
    return " ".join(values)


def build_envelope(**fields) -> Optional[KissEnvelope]:
    """Create an envelope, or None if the fields do not validate"""
    try:
        return KissEnvelope(**fields)
    except PydanticValidationError as e:
        logger.debug(f"Skipping record: {e}")
        return None


class ObjectNormalizer:
    """
    Normalize objects API results (``{uuid, record: {data}}``).

    The envelope carries ``record.data`` as payload and no title or meta.
    """

    def __init__(self, id_prefix: str):
        self.id_prefix = id_prefix

    def normalize(self, item: Any) -> Optional[KissEnvelope]:
        data = get_object_data(item)
        if data is None:
            return None

        uuid = item.get("uuid")
        if not isinstance(uuid, str) or not uuid.strip():
            return None

        return build_envelope(
            id=f"{self.id_prefix}_{uuid}",
            payload=data,
        )


class MedewerkerNormalizer:
    """
    Normalize employee objects.

    Title is the contact name, meta the function, department and skills.
    """

    id_prefix = "smoelenboek"

    def normalize(self, item: Any) -> Optional[KissEnvelope]:
        data = get_object_data(item)
        if data is None:
            return None

        medewerker_id = data.get("id")
        if not isinstance(medewerker_id, str) or not medewerker_id.strip():
            return None

        return build_envelope(
            id=f"{self.id_prefix}_{medewerker_id}",
            title=join_strings(data.get("contact"), NAME_FIELDS),
            object_meta=join_strings(data, META_FIELDS),
            payload=data,
        )


class ProductNormalizer:
    """Normalize product catalogue records (kennisartikelen)"""

    def __init__(self, id_prefix: str = "kennisartikel", language: str = "nl"):
        self.id_prefix = id_prefix
        self.language = language

    def normalize(self, item: Any) -> Optional[KissEnvelope]:
        if not isinstance(item, dict):
            return None

        uuid = item.get("uuid")
        if not isinstance(uuid, str) or not uuid.strip():
            return None

        translation = self._find_translation(item.get("vertalingen"))

        return build_envelope(
            id=f"{self.id_prefix}_{uuid}",
            title=self._string(translation.get("productTitelDecentraal")),
            object_meta=self._string(translation.get("specifiekeTekst")),
            payload=item,
        )

    def _find_translation(self, translations: Any) -> Dict[str, Any]:
        if not isinstance(translations, list):
            return {}
        for translation in translations:
            if isinstance(translation, dict) and translation.get("taal") == self.language:
                return translation
        return {}

    @staticmethod
    def _string(value: Any) -> Optional[str]:
        return value if isinstance(value, str) else None


class PageNormalizer:
    """
    Normalize Graph site pages.

    Text web parts are reduced to plain text blocks and headings.
    """

    def __init__(self, id_prefix: str = "sharepoint"):
        self.id_prefix = id_prefix

    def normalize(self, page: Any) -> Optional[KissEnvelope]:
        if not isinstance(page, dict):
            return None

        page_id = page.get("id")
        if not isinstance(page_id, str) or not page_id.strip():
            return None

        content: List[str] = []
        headings: List[str] = []
        for html in self._get_html(page):
            text, page_headings = extract_text(html)
            if text and text not in content:
                content.append(text)
            for heading in page_headings:
                if heading not in headings:
                    headings.append(heading)

        title = page.get("title")
        if not isinstance(title, str) or not title.strip():
            title = DEFAULT_PAGE_TITLE

        url = page.get("webUrl") if isinstance(page.get("webUrl"), str) else None

        page_data = {
            "id": page_id,
            "title": title,
            "content": content,
            "headings": headings,
            "url": url,
            "lastModified": page.get("lastModifiedDateTime") or datetime.now(timezone.utc).isoformat(),
            "createdBy": self._display_name(page.get("createdBy")),
            "lastModifiedBy": self._display_name(page.get("lastModifiedBy")),
        }

        return build_envelope(
            id=f"{self.id_prefix}_{page_id}",
            title=title,
            object_meta="",
            url=url,
            payload=page_data,
        )

    @staticmethod
    def _get_html(page: Dict[str, Any]) -> List[str]:
        web_parts = page.get("webParts", page.get("webparts"))
        if not isinstance(web_parts, list):
            return []
        return [
            part["innerHtml"]
            for part in web_parts
            if isinstance(part, dict)
            and isinstance(part.get("innerHtml"), str)
            and part["innerHtml"].strip()
        ]

    @staticmethod
    def _display_name(identity: Any) -> Optional[str]:
        """Safely read ``identity.user.displayName``"""
        if not isinstance(identity, dict):
            return None
        user = identity.get("user")
        if not isinstance(user, dict):
            return None
        name = user.get("displayName")
        return name if isinstance(name, str) else None
