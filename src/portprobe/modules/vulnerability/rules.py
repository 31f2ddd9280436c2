"""
Port risk classification table.

Each entry maps a port to the finding raised whenever that port is found open:

    CRITICAL - services that should never be internet-facing (databases, container APIs)
    HIGH     - services commonly exploited (cleartext logins, remote desktop, SMB)

Service- and version-specific checks live in ``analyzer.py``.
"""

from portprobe.modules.models import Severity, Vulnerability


def _rule(severity: Severity, title: str, description: str, recommendation: str) -> Vulnerability:
    return Vulnerability(
        severity=severity,
        title=title,
        description=description,
        recommendation=recommendation,
    )


def _database(label: str, port: int) -> Vulnerability:
    return _rule(
        Severity.CRITICAL,
        f"{label} database exposed",
        f"{label} is reachable on port {port}. Direct database exposure allows "
        "brute-force login attempts and exploitation of unpatched server vulnerabilities.",
        f"Block port {port} at the firewall and bind {label} to a private interface. "
        "Use an SSH tunnel or VPN for remote administration.",
    )


PORT_RISK_TABLE: dict[int, Vulnerability] = {
    # === CRITICAL: databases ===
    3306: _database("MySQL", 3306),
    5432: _database("PostgreSQL", 5432),
    27017: _database("MongoDB", 27017),
    6379: _database("Redis", 6379),
    1433: _database("Microsoft SQL Server", 1433),
    5984: _database("CouchDB", 5984),
    9042: _database("Cassandra", 9042),
    9200: _database("Elasticsearch", 9200),
    # === CRITICAL: container and orchestration control planes ===
    2375: _rule(
        Severity.CRITICAL,
        "Docker API exposed without TLS",
        "The Docker daemon API on port 2375 accepts unauthenticated requests. "
        "Anyone who can reach it can start privileged containers and take over the host.",
        "Disable the TCP socket or move to 2376 with mutual TLS. Never expose 2375.",
    ),
    10250: _rule(
        Severity.CRITICAL,
        "Kubelet API exposed",
        "The Kubelet API can allow command execution inside pods when anonymous "
        "authentication is enabled.",
        "Disable anonymous auth on the kubelet and restrict port 10250 to the control plane.",
    ),
    2379: _rule(
        Severity.CRITICAL,
        "etcd client API exposed",
        "etcd stores cluster state and secrets. An exposed client port can leak "
        "every Kubernetes secret.",
        "Require client certificates for etcd and firewall port 2379.",
    ),
    # === HIGH: cleartext and commonly exploited services ===
    23: _rule(
        Severity.HIGH,
        "Telnet service exposed",
        "Telnet sends credentials and session data in cleartext.",
        "Disable Telnet and use SSH instead.",
    ),
    21: _rule(
        Severity.HIGH,
        "FTP service exposed",
        "FTP transmits credentials in cleartext and is frequently misconfigured "
        "for anonymous access.",
        "Replace FTP with SFTP or FTPS, and disable anonymous login.",
    ),
    3389: _rule(
        Severity.HIGH,
        "RDP exposed",
        "Remote Desktop is a top target for brute-force attacks and has a history "
        "of pre-authentication remote code execution bugs.",
        "Put RDP behind a VPN, enable Network Level Authentication and restrict source IPs.",
    ),
    5900: _rule(
        Severity.HIGH,
        "VNC exposed",
        "VNC often lacks encryption and strong authentication.",
        "Tunnel VNC over SSH or a VPN and firewall ports 5900-5910.",
    ),
    5901: _rule(
        Severity.HIGH,
        "VNC exposed",
        "VNC display :1 is reachable and often lacks encryption and strong authentication.",
        "Tunnel VNC over SSH or a VPN and firewall ports 5900-5910.",
    ),
    445: _rule(
        Severity.HIGH,
        "SMB exposed",
        "SMB exposure enables credential relay attacks and wormable exploits.",
        "Block port 445 at the perimeter.",
    ),
    139: _rule(
        Severity.HIGH,
        "NetBIOS session service exposed",
        "NetBIOS leaks host and share information and supports legacy SMB.",
        "Block port 139 at the perimeter and disable NetBIOS over TCP/IP.",
    ),
    135: _rule(
        Severity.HIGH,
        "MSRPC endpoint mapper exposed",
        "The RPC endpoint mapper discloses services and has been a vector for worms.",
        "Block port 135 at the perimeter.",
    ),
}

REDIS_NO_AUTH = _rule(
    Severity.CRITICAL,
    "Redis accessible without authentication",
    "The server answered PING and INFO without credentials. Unauthenticated Redis "
    "can be abused to write files and execute code on the host.",
    "Enable requirepass or ACLs, enable protected-mode and bind to localhost.",
)

CLEARTEXT_FTP = PORT_RISK_TABLE[21]

OUTDATED_OPENSSH = _rule(
    Severity.MEDIUM,
    "Outdated OpenSSH version",
    "OpenSSH releases before 7.4 contain known vulnerabilities, including user "
    "enumeration and privilege separation bypasses.",
    "Upgrade OpenSSH to a supported release.",
)

OUTDATED_NGINX = _rule(
    Severity.MEDIUM,
    "Outdated nginx version",
    "nginx releases before 1.20 are out of support and include the 1-byte "
    "resolver overwrite (CVE-2021-23017).",
    "Upgrade nginx to a supported stable release.",
)

OUTDATED_APACHE = _rule(
    Severity.MEDIUM,
    "Outdated Apache httpd version",
    "Apache httpd releases before 2.4.51 include path traversal and remote code "
    "execution bugs (CVE-2021-41773, CVE-2021-42013).",
    "Upgrade Apache httpd to the latest 2.4 release.",
)

VERSION_DISCLOSURE = _rule(
    Severity.LOW,
    "Service version disclosed",
    "The service advertises its exact version, which helps attackers match it "
    "against known vulnerabilities.",
    "Suppress version strings in banners and response headers.",
)

UNENCRYPTED_HTTP = _rule(
    Severity.INFO,
    "Unencrypted HTTP",
    "The web service answers plain HTTP, so traffic can be observed or modified in transit.",
    "Serve the application over HTTPS and redirect plain HTTP.",
)

EPHEMERAL_ENDPOINT = _rule(
    Severity.INFO,
    "Transient listener",
    "The port did not stay open across repeated probes and is likely a short-lived "
    "outbound connection rather than a service.",
    "No action needed unless the port is expected to host a service.",
)
