"""Ready-made parsers for common web server and AWS access-log layouts.

Every factory accepts the keyword arguments of :class:`Parser` (handlers,
options, sink) and returns a parser bound to the preset's patterns. Patterns
are listed from most to least specific so richer layouts win.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

from .errors import ConfigurationError
from .parser import Parser
from .patterns import LtsvMatcher, PatternSet

_TOKEN = r"[!-~]+"
_PRINTABLE = r"[ -~]+"
_NUMBER = r"[\d\-.]+"
_STATUS = r"\d{1,3}|-"
_QUOTED = r'[^"]*'


def _f(name: str, body: str = _TOKEN) -> str:
    return f"(?P<{name}>{body})"


def _q(name: str, body: str = _PRINTABLE) -> str:
    return f'"{_f(name, body)}"'


def _line(sep: str, *parts: str) -> str:
    return "^" + sep.join(parts)


_REQUEST = (
    '"'
    + _f("method", r"[A-Z\-]+")
    + " "
    + _f("request_uri", r'[^ "]+')
    + " "
    + _f("protocol", r"HTTP/[0-9.]+|-")
    + '"'
)

# Apache common / combined log format

_CLF = (
    _f("remote_host", r"\S+"),
    _f("remote_logname", r"\S+"),
    _f("remote_user", r"[\S ]+"),
    _f("datetime", r"\[[^\]]+\]"),
    _REQUEST,
    _f("status", r"[0-9]{3}"),
    _f("size", r"[0-9]+|-"),
)
_COMBINED = (_q("referer", _QUOTED), _q("user_agent", _QUOTED))


def _clf_patterns(head: tuple[str, ...]) -> tuple[str, ...]:
    return (
        _line(" ", *head, *_COMBINED),
        _line(" ", *head),
        _line("\t", *head, *_COMBINED),
        _line("\t", *head),
    )


APACHE_CLF_PATTERNS = _clf_patterns(_CLF)
APACHE_CLF_VHOST_PATTERNS = _clf_patterns((_f("virtual_host", r"\S+"), *_CLF))

# Amazon S3 server access logs

_S3 = (
    _f("bucket_owner"),
    _f("bucket"),
    _f("time", r"\[[^\]]+\]"),
    _f("remote_ip"),
    _f("requester"),
    _f("request_id"),
    _f("operation"),
    _f("key"),
    _REQUEST,
    _f("http_status", r"\d{1,3}"),
    _f("error_code"),
    _f("bytes_sent", _NUMBER),
    _f("object_size", _NUMBER),
    _f("total_time", _NUMBER),
    _f("turn_around_time", _NUMBER),
    _q("referer", _QUOTED),
    _q("user_agent", _QUOTED),
    _f("version_id"),
)
# Fields appended to the layout over time, oldest first.
_S3_EXTRA = tuple(
    _f(name)
    for name in (
        "host_id",
        "signature_version",
        "cipher_suite",
        "authentication_type",
        "host_header",
        "tls_version",
        "access_point_arn",
        "acl_required",
    )
)

S3_PATTERNS = tuple(_line(" ", *_S3, *_S3_EXTRA[:n]) for n in (8, 7, 6, 5, 0))

# Amazon CloudFront standard logs (tab separated)

CLOUDFRONT_PATTERNS = (
    _line(
        "\t",
        _f("date", r"[\d\-.:]+"),
        _f("time", r"[\d\-.:]+"),
        _f("x_edge_location", _PRINTABLE),
        _f("sc_bytes", _NUMBER),
        _f("c_ip", _PRINTABLE),
        _f("cs_method", _PRINTABLE),
        _f("cs_host", _PRINTABLE),
        _f("cs_uri_stem", _PRINTABLE),
        _f("sc_status", _STATUS),
        _f("cs_referer", _QUOTED),
        _f("cs_user_agent", _QUOTED),
        _f("cs_uri_query", _PRINTABLE),
        _f("cs_cookie", r"\S+"),
        _f("x_edge_result_type", _PRINTABLE),
        _f("x_edge_request_id", _PRINTABLE),
        _f("x_host_header", _PRINTABLE),
        _f("cs_protocol", _PRINTABLE),
        _f("cs_bytes", _NUMBER),
        _f("time_taken", _NUMBER),
        _f("x_forwarded_for", _PRINTABLE),
        _f("ssl_protocol", _PRINTABLE),
        _f("ssl_cipher", _PRINTABLE),
        _f("x_edge_response_result_type", _PRINTABLE),
        _f("cs_protocol_version", _PRINTABLE),
        _f("fle_status", _PRINTABLE),
        _f("fle_encrypted_fields", r"\S+"),
        _f("c_port", _NUMBER),
        _f("time_to_first_byte", _NUMBER),
        _f("x_edge_detailed_result_type", _PRINTABLE),
        _f("sc_content_type", _PRINTABLE),
        _f("sc_content_len", _NUMBER),
        _f("sc_range_start", _NUMBER),
        _f("sc_range_end", _NUMBER),
    ),
)

# Elastic Load Balancing

ALB_PATTERNS = (
    _line(
        " ",
        _f("type"),
        _f("time"),
        _f("elb"),
        _f("client_port"),
        _f("target_port"),
        _f("request_processing_time", _NUMBER),
        _f("target_processing_time", _NUMBER),
        _f("response_processing_time", _NUMBER),
        _f("elb_status_code", _STATUS),
        _f("target_status_code", _STATUS),
        _f("received_bytes", _NUMBER),
        _f("sent_bytes", _NUMBER),
        _REQUEST,
        _q("user_agent", _QUOTED),
        _f("ssl_cipher"),
        _f("ssl_protocol"),
        _f("target_group_arn"),
        _q("trace_id"),
        _q("domain_name"),
        _q("chosen_cert_arn"),
        _f("matched_rule_priority"),
        _f("request_creation_time"),
        _q("actions_executed"),
        _q("redirect_url"),
        _q("error_reason"),
        _q("target_port_list"),
        _q("target_status_code_list"),
        _q("classification"),
        _q("classification_reason"),
    ),
)

NLB_PATTERNS = (
    _line(
        " ",
        _f("type"),
        _f("version"),
        _f("time"),
        _f("elb"),
        _f("listener"),
        _f("client_port"),
        _f("destination_port"),
        _f("connection_time", _NUMBER),
        _f("tls_handshake_time", _NUMBER),
        _f("received_bytes"),
        _f("sent_bytes"),
        _f("incoming_tls_alert"),
        _f("chosen_cert_arn"),
        _f("chosen_cert_serial", _PRINTABLE),
        _f("tls_cipher", r"\S+"),
        _f("tls_protocol_version"),
        _f("tls_named_group"),
        _f("domain_name"),
        _f("alpn_fe_protocol"),
        _f("alpn_be_protocol"),
        _f("alpn_client_preference_list", _PRINTABLE),
        _f("tls_connection_creation_time"),
    ),
)

_CLB = (
    _f("time"),
    _f("elb"),
    _f("client_port"),
    _f("backend_port"),
    _f("request_processing_time", _NUMBER),
    _f("backend_processing_time", _NUMBER),
    _f("response_processing_time", _NUMBER),
    _f("elb_status_code", _STATUS),
    _f("backend_status_code", _STATUS),
    _f("received_bytes", _NUMBER),
    _f("sent_bytes", _NUMBER),
    _REQUEST,
)

CLB_PATTERNS = (
    _line(" ", *_CLB, _q("user_agent", _QUOTED), _f("ssl_cipher"), _f("ssl_protocol")),
    _line(" ", *_CLB),
)

PRESET_PATTERNS: dict[str, tuple[str, ...]] = {
    "apache_clf": APACHE_CLF_PATTERNS,
    "apache_clf_vhost": APACHE_CLF_VHOST_PATTERNS,
    "s3": S3_PATTERNS,
    "cloudfront": CLOUDFRONT_PATTERNS,
    "alb": ALB_PATTERNS,
    "nlb": NLB_PATTERNS,
    "clb": CLB_PATTERNS,
}


def _regex_parser(name: str, **kwargs: Any) -> Parser:
    return Parser(PatternSet().add_patterns(PRESET_PATTERNS[name]), **kwargs)


def apache_clf_parser(**kwargs: Any) -> Parser:
    """Apache common/combined log format, space or tab separated."""
    return _regex_parser("apache_clf", **kwargs)


def apache_clf_vhost_parser(**kwargs: Any) -> Parser:
    """Apache log format with a leading virtual host field."""
    return _regex_parser("apache_clf_vhost", **kwargs)


def s3_parser(**kwargs: Any) -> Parser:
    return _regex_parser("s3", **kwargs)


def cloudfront_parser(**kwargs: Any) -> Parser:
    return _regex_parser("cloudfront", **kwargs)


def alb_parser(**kwargs: Any) -> Parser:
    return _regex_parser("alb", **kwargs)


def nlb_parser(**kwargs: Any) -> Parser:
    return _regex_parser("nlb", **kwargs)


def clb_parser(**kwargs: Any) -> Parser:
    return _regex_parser("clb", **kwargs)


def ltsv_parser(**kwargs: Any) -> Parser:
    """Labeled Tab-Separated Values; fields come from each line's labels."""
    return Parser(LtsvMatcher(), **kwargs)


PRESETS: dict[str, Callable[..., Parser]] = {
    "apache_clf": apache_clf_parser,
    "apache_clf_vhost": apache_clf_vhost_parser,
    "s3": s3_parser,
    "cloudfront": cloudfront_parser,
    "alb": alb_parser,
    "nlb": nlb_parser,
    "clb": clb_parser,
    "ltsv": ltsv_parser,
}


def preset_parser(name: str, **kwargs: Any) -> Parser:
    """Look up a preset by name and build its parser."""
    try:
        factory = PRESETS[name]
    except KeyError as exc:
        known = ", ".join(sorted(PRESETS))
        raise ConfigurationError(f"unknown preset '{name}' (known: {known})") from exc
    return factory(**kwargs)


def build_parser(
    *, preset: str | None = None, patterns: Sequence[str] = (), **kwargs: Any
) -> Parser:
    """Build a parser from either a preset name or custom named-group patterns."""
    if preset and patterns:
        raise ConfigurationError("use either a preset or custom patterns, not both")
    if preset:
        return preset_parser(preset, **kwargs)
    return Parser(PatternSet().add_patterns(patterns), **kwargs)
