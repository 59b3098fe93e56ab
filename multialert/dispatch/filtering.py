"""
Strict-mode field filtering for alert payloads.

An allow-list ("specific") is a list of field specs, each either a bare
field name or a mapping with a ``key`` or ``field`` entry plus optional
display hints (``label``/``title``, ``emoji``, ``markdown``).
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional


def field_name(spec: Any) -> Optional[str]:
    """Extract the field name from a single field spec, or None if it has none."""
    if isinstance(spec, str):
        return spec
    if isinstance(spec, Mapping):
        return spec.get('key') or spec.get('field')
    return None


def get_field_names(specific: Optional[Iterable[Any]]) -> List[str]:
    """Return the field names named by an allow-list, skipping invalid entries."""
    if not specific or isinstance(specific, (str, bytes)):
        return []
    names = []
    for spec in specific:
        name = field_name(spec)
        if name:
            names.append(name)
    return names


def validate_specific_config(specific: Any) -> bool:
    """Check that every entry of an allow-list names a field."""
    if not isinstance(specific, (list, tuple)):
        return False
    return all(field_name(spec) for spec in specific)


def filter_data_by_specific(data: Mapping[str, Any],
                            specific: Optional[Iterable[Any]],
                            strict_mode: bool = False) -> Dict[str, Any]:
    """
    Filter an event down to the fields of an allow-list.

    With strict mode off, or an allow-list naming no fields, a shallow
    copy of the whole event is returned. Allow-listed fields missing from
    the event are silently omitted.

    Args:
        data: Event payload
        specific: Allow-list of field specs
        strict_mode: Whether filtering applies at all

    Returns:
        New dict; ``data`` is never mutated
    """
    if not strict_mode:
        return dict(data)

    allowed = get_field_names(specific)
    if not allowed:
        return dict(data)

    return {name: data[name] for name in allowed if name in data}
