"""
Formatting helpers shared by the notification channels.
"""

import json
import re
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from multialert.dispatch.filtering import field_name
from multialert.dispatch.models import AlertKind

KIND_EMOJIS = {
    AlertKind.ERROR: '🚨',
    AlertKind.WARN: '⚠️',
    AlertKind.INFO: 'ℹ️',
    AlertKind.SUCCESS: '✅',
}
DEFAULT_EMOJI = '📋'

# Embed colors (Discord expects integers)
KIND_COLORS = {
    AlertKind.ERROR: 0xe74c3c,
    AlertKind.WARN: 0xf39c12,
    AlertKind.INFO: 0x3498db,
    AlertKind.SUCCESS: 0x27ae60,
}
DEFAULT_COLOR = 0x95a5a6

KIND_SEVERITIES = {
    AlertKind.ERROR: 'high',
    AlertKind.WARN: 'medium',
    AlertKind.INFO: 'low',
    AlertKind.SUCCESS: 'info',
}

STACK_KEYS = ('stack', 'stack_trace', 'error_stack')

_WORD_START = re.compile(r'\b\w')


def kind_emoji(kind: AlertKind) -> str:
    return KIND_EMOJIS.get(kind, DEFAULT_EMOJI)


def utc_timestamp() -> str:
    """Current time as an ISO-8601 UTC string."""
    return datetime.now(timezone.utc).isoformat()


def humanize_key(key: str) -> str:
    """Turn a payload key into a display title: ``user_id`` -> ``User Id``."""
    return _WORD_START.sub(lambda match: match.group().upper(), str(key).replace('_', ' '))


def try_parse_json(value: Any) -> Any:
    """Parse a JSON string into an object; anything else is returned unchanged."""
    if not isinstance(value, str):
        return value
    try:
        return json.loads(value)
    except ValueError:
        return value


def print_json(value: Any) -> Any:
    """Pretty-print objects and JSON strings; leave scalars alone."""
    parsed = try_parse_json(value)
    if isinstance(parsed, (dict, list)):
        return json.dumps(parsed, indent=2, ensure_ascii=False, default=str)
    return value


def print_stack(stack: Any) -> Any:
    """Keep only the first two lines of a stack trace."""
    if not isinstance(stack, str):
        return stack
    lines = stack.split('\n')
    if len(lines) <= 2:
        return stack
    return '\n'.join(lines[:2])


def display_value(key: str, value: Any) -> str:
    """Render a value for text output."""
    if isinstance(value, (dict, list)):
        return print_json(value)
    if isinstance(value, str) and key in STACK_KEYS:
        return print_stack(value)
    return str(value)


def compact_value(value: Any) -> str:
    """Single-line rendering of a value."""
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False, default=str)
    return str(value)


def escape_markdown(text: Any) -> Any:
    """Escape the characters Telegram's legacy Markdown treats as markup."""
    if not isinstance(text, str):
        return text
    return (text.replace('*', '\\*')
                .replace('_', '\\_')
                .replace('`', '\\`')
                .replace('[', '\\['))


def spec_title(spec: Any) -> Optional[str]:
    if isinstance(spec, Mapping):
        return spec.get('title') or spec.get('label')
    return None


def iter_fields(data: Mapping[str, Any],
                specific: Optional[Iterable[Any]] = None,
                include_rest: bool = False) -> Iterator[Tuple[str, str, Any, Dict[str, Any]]]:
    """
    Walk the displayable fields of an event.

    With an allow-list, its fields come first, in allow-list order and with
    their configured titles. Without one, or with ``include_rest``, the
    remaining event keys follow with generated titles. ``None`` values are
    skipped.

    Yields:
        (key, title, value, display hints) tuples
    """
    seen = set()
    for spec in specific or []:
        key = field_name(spec)
        if not key or key in seen:
            continue
        seen.add(key)
        value = data.get(key)
        if value is None:
            continue
        hints = dict(spec) if isinstance(spec, Mapping) else {}
        yield key, spec_title(spec) or humanize_key(key), value, hints

    if seen and not include_rest:
        return

    for key, value in data.items():
        if key in seen or value is None or callable(value):
            continue
        yield key, humanize_key(key), value, {}


def plain_lines(data: Mapping[str, Any], specific: Optional[Iterable[Any]] = None) -> List[str]:
    """``Title: value`` lines used by the plain (non-beauty) formats."""
    return [f"{title}: {compact_value(value)}" for _, title, value, _ in iter_fields(data, specific)]


def detect_nested_target(targets: Optional[Mapping[str, Any]],
                         service: Optional[str],
                         kind: AlertKind,
                         action: Optional[str] = None) -> Any:
    """
    Pick a routing target (Slack channel, Telegram thread, ...) from a
    nested ``service -> kind -> action`` mapping.

    Lookup order: the exact action, then ``all`` under the same kind, then
    the ``error`` branch of the service, then the top-level ``general`` entry.

    Returns:
        The target, or None when nothing matches
    """
    if not targets:
        return None

    service_key = (service or 'hotel').lower()
    kind_keys = [kind.value]
    if kind is AlertKind.WARN:
        kind_keys.append('warning')
    action_key = (action or 'all').lower()

    service_targets = targets.get(service_key)
    if isinstance(service_targets, Mapping):
        branches = [service_targets.get(key) for key in kind_keys]
        if kind is not AlertKind.ERROR:
            branches.append(service_targets.get('error'))
        for branch in branches:
            if not isinstance(branch, Mapping):
                continue
            if branch.get(action_key) is not None:
                return branch[action_key]
            if branch.get('all') is not None:
                return branch['all']

    return targets.get('general')
