from inspect import Parameter, getsourcelines, signature, unwrap
from pathlib import Path
import re
from time import time
from typing import Any, Callable

from src.platform.logging.loguru_io_config import (
    SENSITIVE_KEYWORDS,
    call_depth_var,
    chain_start_time_var,
)


MASK = '********'
_POSITIONAL = (Parameter.POSITIONAL_ONLY, Parameter.POSITIONAL_OR_KEYWORD)
_NAMED = (Parameter.POSITIONAL_OR_KEYWORD, Parameter.KEYWORD_ONLY)

# key='value' / key="value" / key=value / key: value inside repr() output,
# e.g. DLOCAL_SECRET_KEY or X-Job-Token echoed in a settings or header repr
_SENSITIVE_PAIR_PATTERN = re.compile(
    r"""(\b(?:%s)\b)(\s*[=:]\s*)(['"]?)[^'",)\s]+(['"]?)""" % '|'.join(SENSITIVE_KEYWORDS),
    re.IGNORECASE,
)


def get_chain_start_time() -> float:
    """Start time of the outermost Logger.io call in this context"""
    start_time = chain_start_time_var.get()
    if not start_time:
        start_time = time()
        chain_start_time_var.set(start_time)
    return start_time


def reset_call_depth() -> None:
    depth = call_depth_var.get() - 1
    call_depth_var.set(depth)
    if depth == 0:
        chain_start_time_var.set(0)


def build_call_target_func_path(func: Callable[..., Any]) -> str:
    """``order_repo_impl.py::OrderRepoImpl.get_by_id:42``"""
    target = unwrap(getattr(func, '__func__', func))
    try:
        lineno = getsourcelines(target)[1]
    except (OSError, TypeError):
        lineno = 0
    return f'{Path(target.__code__.co_filename).name}::{func.__qualname__}:{lineno}'


def normalize_args_kwargs(
    func: Callable[..., Any], *args: Any, **kwargs: Any
) -> tuple[tuple[Any, ...], dict[str, Any]]:
    """Drop arguments the wrapped callable cannot accept."""
    params = list(signature(unwrap(func)).parameters.values())
    kinds = {param.kind for param in params}

    if Parameter.VAR_KEYWORD not in kinds:
        named = {param.name for param in params if param.kind in _NAMED}
        kwargs = {key: value for key, value in kwargs.items() if key in named}

    if Parameter.VAR_POSITIONAL not in kinds:
        positional = [p for p in params if p.kind in _POSITIONAL and p.name not in kwargs]
        args = args[: len(positional)]

    return args, kwargs


def mask_sensitive(data: Any) -> Any:
    try:
        text = str(data)
    except Exception:
        return data
    masked = _SENSITIVE_PAIR_PATTERN.sub(rf'\1\2\3{MASK}\4', text)
    return data if masked == text else masked


def should_mask_keyword(keyword: Any, value: Any) -> Any:
    return MASK if str(keyword).lower().replace('-', '_') in SENSITIVE_KEYWORDS else value


def truncate_content(data: Any, max_length: int = 1000) -> Any:
    text = str(data)
    if len(text) <= max_length:
        return data
    return f'{text[:max_length]}... (truncated {len(text) - max_length} chars)'
