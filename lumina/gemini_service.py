import os
import json
import re
import logging
from dataclasses import dataclass, field, replace
from typing import Optional

from dotenv import load_dotenv
from google import genai
from google.genai import types

from .entities import Invoice
from .utils import coerce_number

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash"
EMAIL_ERROR_TEXT = "Error generating email. Please try again."
EMAIL_EMPTY_TEXT = "Could not generate email."

SYSTEM_PROMPT = """You are a helpful accounting assistant.
Extract invoice line items and a brief summary note from the user's natural language description.
If the quantity isn't specified, assume 1. If price isn't specified, assume 0."""

EXTRACTION_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "items": types.Schema(
            type=types.Type.ARRAY,
            items=types.Schema(
                type=types.Type.OBJECT,
                properties={
                    "description": types.Schema(type=types.Type.STRING),
                    "quantity": types.Schema(type=types.Type.NUMBER),
                    "price": types.Schema(type=types.Type.NUMBER),
                },
                required=["description", "quantity", "price"],
            ),
        ),
        "suggestedNotes": types.Schema(type=types.Type.STRING),
    },
    required=["items"],
)

_client = None


class AIServiceError(RuntimeError):
    """The AI service could not be reached or answered nonsense. Safe to retry."""

    retryable = True


@dataclass
class AIExtraction:
    items: list = field(default_factory=list)
    suggested_notes: Optional[str] = None

    def to_dict(self):
        data = {"items": self.items}
        if self.suggested_notes:
            data["suggestedNotes"] = self.suggested_notes
        return data


def _api_key():
    return os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY") or ""


def has_api_key():
    return bool(_api_key())


def _model():
    return os.getenv("GEMINI_MODEL", DEFAULT_MODEL)


def _get_client():
    global _client
    if not has_api_key():
        raise AIServiceError("API Key missing")
    if _client is None:
        _client = genai.Client(api_key=_api_key())
    return _client


def _strip_fences(text):
    # Gemini may still wrap JSON in markdown
    return re.sub(r"^```(?:json)?|```$", "", text.strip()).strip()


def _normalize_items(raw_items):
    items = []
    if not isinstance(raw_items, list):
        return items
    for item in raw_items:
        if not isinstance(item, dict):
            continue
        quantity = item.get("quantity")
        items.append({
            "description": str(item.get("description") or ""),
            "quantity": 1.0 if quantity in (None, "") else coerce_number(quantity),
            "price": coerce_number(item.get("price")),
        })
    return items


def extract_line_items(text):
    """Turn a free-text description into structured line items.

    Example input: "10 hours of web development at $50/hr and a $200 hosting fee"
    """
    client = _get_client()
    try:
        response = client.models.generate_content(
            model=_model(),
            contents=f'Parse this invoice description: "{text}"',
            config=types.GenerateContentConfig(
                system_instruction=SYSTEM_PROMPT,
                response_mime_type="application/json",
                response_schema=EXTRACTION_SCHEMA,
                temperature=0.1,
            ),
        )
        data = json.loads(_strip_fences(response.text or "{}"))
        if not isinstance(data, dict):
            raise ValueError("response is not a JSON object")
    except Exception as e:
        logger.error("Gemini parse error: %s", e)
        raise AIServiceError("Failed to parse invoice text with AI.") from e

    notes = data.get("suggestedNotes")
    return AIExtraction(
        items=_normalize_items(data.get("items")),
        suggested_notes=str(notes) if notes else None,
    )


def draft_reminder_email(client_name, invoice_number, amount_text, due_date):
    """Write a polite payment reminder. Upstream failures return a placeholder."""
    client = _get_client()
    prompt = (
        f"Write a polite, professional, and concise email reminder to {client_name} "
        f"for Invoice #{invoice_number} totaling {amount_text}, which is due on {due_date}.\n"
        "Do not include subject line placeholders, just give me the body text."
    )
    try:
        response = client.models.generate_content(model=_model(), contents=prompt)
    except Exception as e:
        logger.error("Gemini email generation error: %s", e)
        return EMAIL_ERROR_TEXT
    return response.text or EMAIL_EMPTY_TEXT


def apply_extraction(invoice, extraction):
    """Merge extracted items into a copy of the draft.

    Blank rows are dropped, extracted rows appended and suggested notes added
    on a new line. The original draft is not modified.
    """
    kept = [replace(item) for item in invoice.items if item.description]
    added = [
        Invoice.new_item(item["description"], item["quantity"], item["price"])
        for item in extraction.items
    ]
    notes = invoice.notes
    if extraction.suggested_notes:
        notes = f"{notes}\n{extraction.suggested_notes}" if notes else extraction.suggested_notes
    return replace(invoice, items=kept + added, notes=notes)
