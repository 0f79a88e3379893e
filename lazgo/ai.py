from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from datetime import date
from typing import Any, Protocol, Sequence, Union

import google.generativeai as genai

from .analytics import find_top_offender
from .errors import AIServiceError, ValidationError
from .models import GeneratedOutput, MonthlyReportResult, TardinessRecord, TopOffender
from .prompts import build_daily_prompt, build_monthly_prompt

logger = logging.getLogger(__name__)

PARENT_MESSAGE_THRESHOLD = 3

DAILY_ERROR_MESSAGE = "Tidak dapat terhubung ke AI. Mohon coba lagi."
MONTHLY_ERROR_MESSAGE = "Tidak dapat menghasilkan laporan bulanan dari AI. Mohon coba lagi."

SUMMARY_FALLBACK = "Gagal memuat ringkasan."
WHATSAPP_FALLBACK = "Gagal memuat pesan WhatsApp."
RECAP_FALLBACK = "Gagal memuat rekap harian."

# Keycap emoji may arrive with or without the U+FE0F variation selector.
_SUMMARY_RE = re.compile(
    r"1\ufe0f?\u20e3\s*\*\*Ringkasan Keterlambatan\*\*\s*(.*?)(?=\s*[23]\ufe0f?\u20e3|\Z)", re.S
)
_WHATSAPP_RE = re.compile(
    r"2\ufe0f?\u20e3\s*\*\*Pesan WhatsApp untuk Orang Tua\*\*\s*(.*?)(?=\s*3\ufe0f?\u20e3|\Z)", re.S
)
_RECAP_RE = re.compile(r"3\ufe0f?\u20e3\s*\*\*Rekap Harian\*\*\s*(.*)", re.S)
_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.S)


@dataclass(frozen=True)
class SectionsParsed:
    output: GeneratedOutput
    missing: tuple[str, ...] = ()


@dataclass(frozen=True)
class SectionParseError:
    reason: str


ParseResult = Union[SectionsParsed, SectionParseError]


class TextClient(Protocol):
    def generate(self, prompt: str, json_mode: bool = False) -> str: ...


class GeminiTextClient:
    """Gemini text generation through the google-generativeai SDK."""

    def __init__(self, api_key: str, model: str):
        if not api_key.strip():
            raise ValueError("API key is required.")
        if not model.strip():
            raise ValueError("Model is required.")
        genai.configure(api_key=api_key.strip())
        self.model_name = model.strip()
        self._model = genai.GenerativeModel(self.model_name)

    def generate(self, prompt: str, json_mode: bool = False) -> str:
        generation_config: dict[str, Any] = {"temperature": 0.2}
        if json_mode:
            generation_config["response_mime_type"] = "application/json"
        response = self._model.generate_content(prompt, generation_config=generation_config)
        text = response.text
        if not isinstance(text, str) or not text.strip():
            raise RuntimeError("Gemini response did not include text output.")
        return text


class TardinessReporter:
    def __init__(self, client: TextClient):
        self._client = client

    def generate_daily_report(
        self,
        record: TardinessRecord,
        history: Sequence[TardinessRecord],
        today: date | None = None,
    ) -> GeneratedOutput:
        prompt = build_daily_prompt(record, history, today)
        try:
            text = self._client.generate(prompt)
        except Exception as exc:  # noqa: BLE001
            logger.error("Daily report request failed: %s", exc)
            raise AIServiceError(DAILY_ERROR_MESSAGE) from exc

        result = parse_daily_sections(text)
        if isinstance(result, SectionParseError):
            logger.error("Daily report response unusable: %s", result.reason)
            raise AIServiceError(DAILY_ERROR_MESSAGE)
        if result.missing:
            logger.warning("Daily report response missing sections: %s", ", ".join(result.missing))
        return result.output

    def generate_monthly_report(self, records: Sequence[TardinessRecord]) -> MonthlyReportResult:
        if not records:
            raise ValidationError("Tidak ada data untuk bulan yang dipilih.")

        top_offender = find_top_offender(records)
        gate_open = top_offender is not None and top_offender.count >= PARENT_MESSAGE_THRESHOLD
        prompt = build_monthly_prompt(records, top_offender, include_parent_message=gate_open)

        try:
            text = self._client.generate(prompt, json_mode=True)
            parsed = parse_monthly_json(text)
        except Exception as exc:  # noqa: BLE001
            logger.error("Monthly report request failed: %s", exc)
            raise AIServiceError(MONTHLY_ERROR_MESSAGE) from exc

        parent_message: str | None = None
        if gate_open:
            parent_message = parsed["parentMessage"] or fallback_parent_message(top_offender)
        return MonthlyReportResult(
            report=parsed["report"],
            parent_message=parent_message,
            top_offender=top_offender,
        )


def parse_daily_sections(text: str) -> ParseResult:
    if not text or not text.strip():
        return SectionParseError("empty response")

    sections = {
        "summary": (_SUMMARY_RE, SUMMARY_FALLBACK),
        "whatsapp": (_WHATSAPP_RE, WHATSAPP_FALLBACK),
        "daily_recap": (_RECAP_RE, RECAP_FALLBACK),
    }
    values: dict[str, str] = {}
    missing: list[str] = []
    for field, (pattern, fallback) in sections.items():
        match = pattern.search(text)
        value = match.group(1).strip() if match else ""
        if not value:
            missing.append(field)
            value = fallback
        values[field] = value

    if len(missing) == len(sections):
        return SectionParseError("no labelled sections found")
    return SectionsParsed(output=GeneratedOutput(**values), missing=tuple(missing))


def parse_monthly_json(text: str) -> dict[str, Any]:
    """Return ``{"report": str, "parentMessage": str | None}`` from a model reply."""
    payload = _parse_ai_json(text)
    if not isinstance(payload, dict):
        raise RuntimeError("AI response JSON was not an object.")
    report = payload.get("report")
    if not isinstance(report, str) or not report.strip():
        raise RuntimeError("AI response did not include a report.")
    parent_message = payload.get("parentMessage")
    if not isinstance(parent_message, str) or not parent_message.strip():
        parent_message = None
    return {"report": report.strip(), "parentMessage": parent_message.strip() if parent_message else None}


def fallback_parent_message(top_offender: TopOffender) -> str:
    return (
        f"Yth. Bapak/Ibu Orang Tua/Wali dari ananda *{top_offender.name}* ({top_offender.class_name}),\n\n"
        f"Kami informasikan bahwa ananda tercatat terlambat datang ke sekolah sebanyak "
        f"*{top_offender.count} kali* pada bulan ini. Kami mohon perhatian dan kerja sama "
        "Bapak/Ibu agar ananda dapat hadir tepat waktu. Apabila diperlukan, Bapak/Ibu dapat "
        "berdiskusi lebih lanjut dengan wali kelas.\n\n"
        "Terima kasih atas perhatiannya."
    )


def _parse_ai_json(text: str) -> Any:
    trimmed = text.strip()
    if not trimmed:
        raise RuntimeError("AI response was empty.")
    fenced = _FENCE_RE.search(trimmed)
    if fenced:
        trimmed = fenced.group(1).strip()
    try:
        return json.loads(trimmed)
    except json.JSONDecodeError:
        start = trimmed.find("{")
        end = trimmed.rfind("}")
        if start == -1 or end == -1 or start >= end:
            raise RuntimeError("AI response did not contain valid JSON.")
        try:
            return json.loads(trimmed[start : end + 1])
        except json.JSONDecodeError as exc:
            raise RuntimeError("AI response contained invalid JSON.") from exc
