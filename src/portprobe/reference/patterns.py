"""Banner regex families, tried in order; the first family with a match wins."""

import re

SERVICE_PATTERNS: dict[str, list[re.Pattern[str]]] = {
    "SSH": [
        re.compile(r"SSH-[\d.]+-OpenSSH_([\d.]+[^\s]*)", re.IGNORECASE),
        re.compile(r"SSH-[\d.]+-(.+)", re.IGNORECASE),
    ],
    "HTTP": [
        re.compile(r"Server:\s*(.+)", re.IGNORECASE),
        re.compile(r"nginx/([\d.]+)", re.IGNORECASE),
        re.compile(r"Apache/([\d.]+)", re.IGNORECASE),
    ],
    "FTP": [
        re.compile(r"220.*FTP", re.IGNORECASE),
        re.compile(r"220\s+(.+)\s+FTP", re.IGNORECASE),
    ],
    "SMTP": [
        re.compile(r"220\s+(.+)\s+ESMTP", re.IGNORECASE),
        re.compile(r"220.*SMTP", re.IGNORECASE),
    ],
    "MySQL": [
        re.compile(r"\x00[\x00-\xff]*?([\d.]+)[\x00-\xff]*?mysql", re.IGNORECASE),
    ],
    "PostgreSQL": [
        re.compile(r"PostgreSQL\s+([\d.]+)", re.IGNORECASE),
    ],
    "Redis": [
        re.compile(r"\$\d+\r\n"),
    ],
}

# Known web server names and optional version, checked before the raw Server header.
HTTP_SERVER_PATTERN = re.compile(
    r"(nginx|apache|iis|openresty|caddy|litespeed)[/\s]?([\d.]+)?", re.IGNORECASE
)
HTTP_SERVER_HEADER = re.compile(r"Server:\s*([^\r\n]+)", re.IGNORECASE)
REDIS_VERSION = re.compile(r"redis_version:([\d.]+)")
