# oled_router/layout_templates.py
import copy
import re
from typing import Any, Dict, List

from .outcome import ConfigError

_WHOLE = re.compile(r"^\{(\w+)\}$")
_INLINE = re.compile(r"\{(\w+)\}")


def _render_placeholders(obj: Any, params: Dict[str, Any]) -> Any:
    """
    Recursively replace "{name}" placeholders in lists/dicts/strings.
    A string that is exactly one placeholder takes the parameter's own type,
    so `x: "{title_x}"` stays a float.
    """
    if isinstance(obj, str):
        m = _WHOLE.match(obj)
        if m and m.group(1) in params:
            return params[m.group(1)]
        return _INLINE.sub(lambda mm: str(params.get(mm.group(1), mm.group(0))), obj)
    elif isinstance(obj, list):
        return [_render_placeholders(x, params) for x in obj]
    elif isinstance(obj, dict):
        return {k: _render_placeholders(v, params) for k, v in obj.items()}
    else:
        return obj


def _apply_fixed(actions: List[dict], fixed: Dict[Any, Any]) -> List[dict]:
    """
    Turn `value` actions for the given 1-based slots into literal text.
    The argument is still expected on the wire; it just isn't shown.
    """
    slots = {int(k) - 1: str(v) for k, v in (fixed or {}).items()}
    out = []
    for action in actions:
        if action.get("kind") == "value" and action.get("arg") in slots:
            action = dict(action)
            action["kind"] = "text"
            action["text"] = slots[action.pop("arg")]
            action.pop("fmt", None)
        out.append(action)
    return out


def expand_templates(cfg: Dict[str, Any]) -> List[dict]:
    """
    Expand config templates into concrete pattern definitions.
    - templates: { name: { args, actions, font?, units?, variadic? } }
    - patterns:  [ { address, template?, params?, fixed?, ...overrides } ]

    A pattern without `template` is passed through as-is. Keys given on the
    pattern itself win over the template's.

    Returns a flat list of pattern dicts.
    """
    templates = cfg.get("templates", {}) or {}
    out: List[dict] = []

    for rule in cfg.get("patterns", []) or []:
        if not isinstance(rule, dict) or not rule.get("address"):
            raise ConfigError(f"pattern needs an address: {rule!r}")
        r = copy.deepcopy(rule)
        name = r.pop("template", None)
        params = r.pop("params", {}) or {}
        fixed = r.pop("fixed", {}) or {}
        if name is not None:
            if name not in templates:
                raise ConfigError(f"{r['address']}: unknown template {name!r}")
            base = _render_placeholders(copy.deepcopy(templates[name]), params)
            base.update(r)
            r = base
        if fixed:
            r["actions"] = _apply_fixed(r.get("actions", []) or [], fixed)
        out.append(r)

    return out
