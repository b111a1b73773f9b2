"""User-facing message templates in Korean and English.

Every template is a ``Message`` member that declares the parameter names it
takes. The catalogs are checked against those declarations when this module
is imported, and ``render()`` refuses missing or unexpected parameters, so a
typo fails loudly instead of showing a half-formatted string.
"""

from __future__ import annotations

import string
from enum import Enum
from typing import Any


class Locale(str, Enum):
    KO = "ko"
    EN = "en"


DEFAULT_LOCALE = Locale.KO


class Message(Enum):
    """Message templates and the parameter names each one requires."""

    THINKING = ("thinking", frozenset())
    ERROR = ("error", frozenset({"message"}))
    TIMEOUT = ("timeout", frozenset({"seconds"}))
    TOOL_ERROR = ("tool_error", frozenset({"error"}))
    TRUNCATED = ("truncated", frozenset({"removed"}))
    MODE_SWITCHED = ("mode_switched", frozenset({"mode"}))
    MODE_BLOCKED = ("mode_blocked", frozenset({"mode"}))
    TODO_TITLE = ("todo_title", frozenset())
    TODO_SUMMARY = ("todo_summary", frozenset({"completed", "in_progress", "pending"}))
    TODO_EMPTY = ("todo_empty", frozenset())
    MODE_DEFAULT = ("mode_default", frozenset())
    MODE_ACCEPT_EDITS = ("mode_accept_edits", frozenset())
    MODE_BYPASS = ("mode_bypass", frozenset())
    MODE_PLAN = ("mode_plan", frozenset())

    def __init__(self, key: str, params: frozenset[str]) -> None:
        self.key = key
        self.params = params


_CATALOGS: dict[Locale, dict[Message, str]] = {
    Locale.KO: {
        Message.THINKING: "🤔 생각 중...\n\n",
        Message.ERROR: "❌ 오류: {message}",
        Message.TIMEOUT: "⏱️ 응답 시간이 초과되었습니다 ({seconds}초).",
        Message.TOOL_ERROR: "❌ 오류: {error}",
        Message.TRUNCATED: "\n… [출력이 {removed}바이트 잘렸습니다]",
        Message.MODE_SWITCHED: "🔐 권한 모드가 {mode}(으)로 변경되었습니다.\n\n",
        Message.MODE_BLOCKED: "🚫 {mode} 모드는 비활성화되어 있어 전환하지 않았습니다.\n\n",
        Message.TODO_TITLE: "📝 할 일 목록",
        Message.TODO_SUMMARY: "완료 {completed} · 진행 중 {in_progress} · 대기 {pending}",
        Message.TODO_EMPTY: "(항목 없음)",
        Message.MODE_DEFAULT: "기본",
        Message.MODE_ACCEPT_EDITS: "편집 자동 승인",
        Message.MODE_BYPASS: "권한 우회",
        Message.MODE_PLAN: "계획",
    },
    Locale.EN: {
        Message.THINKING: "🤔 Thinking...\n\n",
        Message.ERROR: "❌ Error: {message}",
        Message.TIMEOUT: "⏱️ The request timed out after {seconds}s.",
        Message.TOOL_ERROR: "❌ Error: {error}",
        Message.TRUNCATED: "\n… [output truncated by {removed} bytes]",
        Message.MODE_SWITCHED: "🔐 Permission mode switched to {mode}.\n\n",
        Message.MODE_BLOCKED: "🚫 {mode} mode is disabled; the switch was ignored.\n\n",
        Message.TODO_TITLE: "📝 Todo List",
        Message.TODO_SUMMARY: "{completed} done · {in_progress} in progress · {pending} pending",
        Message.TODO_EMPTY: "(no items)",
        Message.MODE_DEFAULT: "Default",
        Message.MODE_ACCEPT_EDITS: "Accept Edits",
        Message.MODE_BYPASS: "Bypass Permissions",
        Message.MODE_PLAN: "Plan",
    },
}


def _placeholders(template: str) -> frozenset[str]:
    return frozenset(
        name for _, name, _, _ in string.Formatter().parse(template) if name
    )


def _validate_catalogs() -> None:
    for locale in Locale:
        catalog = _CATALOGS[locale]
        missing = set(Message) - set(catalog)
        if missing:
            names = ", ".join(sorted(m.key for m in missing))
            raise RuntimeError(f"Locale {locale.value} is missing templates: {names}")
        for message, template in catalog.items():
            found = _placeholders(template)
            if found != message.params:
                raise RuntimeError(
                    f"Template {locale.value}/{message.key} uses {sorted(found)}, "
                    f"declared {sorted(message.params)}"
                )


_validate_catalogs()


def resolve_locale(raw: str | None) -> Locale:
    """Map a locale tag such as ``en``, ``en_US.UTF-8`` or ``ko-KR`` to a Locale.

    Unknown or empty values resolve to the default (Korean).
    """
    if not raw:
        return DEFAULT_LOCALE
    tag = raw.strip().lower().replace("_", "-").split(".")[0]
    language = tag.split("-")[0]
    for locale in Locale:
        if locale.value == language:
            return locale
    return DEFAULT_LOCALE


def render(message: Message, locale: Locale = DEFAULT_LOCALE, /, **params: Any) -> str:
    """Render ``message`` in ``locale``.

    Raises:
        TypeError: if ``params`` does not match the template's declared names.
    """
    given = frozenset(params)
    if given != message.params:
        missing = sorted(message.params - given)
        extra = sorted(given - message.params)
        raise TypeError(
            f"{message.key}: missing parameters {missing}, unexpected {extra}"
        )
    return _CATALOGS[locale][message].format(**params)


class Localizer:
    """Renders templates for one configured locale."""

    def __init__(self, locale: Locale | str | None = None) -> None:
        self.locale = locale if isinstance(locale, Locale) else resolve_locale(locale)

    def __call__(self, message: Message, /, **params: Any) -> str:
        return render(message, self.locale, **params)

    def mode_label(self, mode: str) -> str:
        """Human-readable name for a permission mode value."""
        labels = {
            "default": Message.MODE_DEFAULT,
            "acceptEdits": Message.MODE_ACCEPT_EDITS,
            "bypassPermissions": Message.MODE_BYPASS,
            "plan": Message.MODE_PLAN,
        }
        message = labels.get(mode)
        return self(message) if message else mode
