"""Well-known port table and banner-based service refinement."""

from portprobe.modules.models import PortInfo

WELL_KNOWN_PORTS: dict[int, PortInfo] = {
    # Web
    80: PortInfo("HTTP", "web", "Hypertext Transfer Protocol"),
    443: PortInfo("HTTPS", "web", "HTTP over TLS/SSL"),
    8080: PortInfo("HTTP-Alt", "web", "HTTP Alternate (Tomcat/Jenkins common)"),
    8443: PortInfo("HTTPS-Alt", "web", "HTTPS Alternate"),
    8000: PortInfo("HTTP-Alt", "web", "HTTP Alternate (Python/Django common)"),
    8888: PortInfo("HTTP-Alt", "web", "HTTP Alternate (Jupyter)"),
    # Remote access
    21: PortInfo("FTP", "remote", "File Transfer Protocol"),
    22: PortInfo("SSH", "remote", "Secure Shell"),
    23: PortInfo("Telnet", "remote", "Telnet (INSECURE)"),
    3389: PortInfo("RDP", "remote", "Remote Desktop Protocol"),
    5900: PortInfo("VNC", "remote", "Virtual Network Computing"),
    5901: PortInfo("VNC", "remote", "VNC Display 1"),
    # Windows networking
    135: PortInfo("MSRPC", "network", "Microsoft RPC Endpoint Mapper"),
    139: PortInfo("NetBIOS", "network", "NetBIOS Session Service"),
    445: PortInfo("SMB", "network", "Server Message Block"),
    # Databases
    3306: PortInfo("MySQL", "database", "MySQL Database"),
    5432: PortInfo("PostgreSQL", "database", "PostgreSQL Database"),
    27017: PortInfo("MongoDB", "database", "MongoDB Database"),
    6379: PortInfo("Redis", "database", "Redis Key-Value Store"),
    9042: PortInfo("Cassandra", "database", "Apache Cassandra"),
    1433: PortInfo("MSSQL", "database", "Microsoft SQL Server"),
    5984: PortInfo("CouchDB", "database", "Apache CouchDB"),
    7474: PortInfo("Neo4j", "database", "Neo4j Graph Database"),
    # Messaging
    5672: PortInfo("RabbitMQ", "messaging", "RabbitMQ AMQP"),
    15672: PortInfo("RabbitMQ-Mgmt", "messaging", "RabbitMQ Management"),
    9092: PortInfo("Kafka", "messaging", "Apache Kafka"),
    4222: PortInfo("NATS", "messaging", "NATS Messaging"),
    # Dev servers
    3000: PortInfo("Web Framework", "web-framework", "Node.js/React/Grafana (common dev port)"),
    3001: PortInfo("Web Framework", "web-framework", "Alternate dev server"),
    4200: PortInfo("Angular", "web-framework", "Angular CLI Dev Server"),
    5000: PortInfo("Web Framework", "web-framework", "Flask/Docker Registry (multi-purpose)"),
    9000: PortInfo("PHP-FPM", "web-framework", "PHP FastCGI"),
    # Email
    25: PortInfo("SMTP", "email", "Simple Mail Transfer Protocol"),
    587: PortInfo("SMTP-Submit", "email", "SMTP Submission"),
    465: PortInfo("SMTPS", "email", "SMTP over SSL"),
    143: PortInfo("IMAP", "email", "Internet Message Access Protocol"),
    993: PortInfo("IMAPS", "email", "IMAP over SSL"),
    110: PortInfo("POP3", "email", "Post Office Protocol v3"),
    995: PortInfo("POP3S", "email", "POP3 over SSL"),
    # Network services
    53: PortInfo("DNS", "network", "Domain Name System"),
    67: PortInfo("DHCP", "network", "Dynamic Host Configuration"),
    68: PortInfo("DHCP-Client", "network", "DHCP Client"),
    161: PortInfo("SNMP", "network", "Simple Network Management"),
    # Containers
    2375: PortInfo("Docker", "container", "Docker API (Insecure)"),
    2376: PortInfo("Docker-TLS", "container", "Docker API over TLS"),
    6443: PortInfo("Kubernetes", "container", "Kubernetes API Server"),
    10250: PortInfo("Kubelet", "container", "Kubelet API"),
    2379: PortInfo("etcd", "container", "etcd Client API"),
    # Monitoring
    9090: PortInfo("Prometheus", "monitoring", "Prometheus Metrics"),
    9200: PortInfo("Elasticsearch", "monitoring", "Elasticsearch HTTP"),
    9300: PortInfo("Elasticsearch-Transport", "monitoring", "Elasticsearch Transport"),
    5601: PortInfo("Kibana", "monitoring", "Kibana Dashboard"),
}

UNKNOWN_PORT = PortInfo("Unknown", "unknown", "Unregistered or custom service")

# (port, banner keyword, refined label)
_BANNER_REFINEMENTS: list[tuple[int, tuple[str, ...], PortInfo]] = [
    (3000, ("grafana",), PortInfo("Grafana", "monitoring", "Grafana Dashboard")),
    (3000, ("node", "express"), PortInfo("Node.js", "web-framework", "Node.js application")),
    (8080, ("tomcat",), PortInfo("Tomcat", "web", "Apache Tomcat")),
    (8080, ("jenkins",), PortInfo("Jenkins", "web-framework", "Jenkins CI/CD")),
    (5000, ("flask", "werkzeug"), PortInfo("Flask", "web-framework", "Flask application")),
    (5000, ("docker", "registry"), PortInfo("Docker Registry", "container", "Docker Registry API")),
]

QUICK_SCAN_PORTS: tuple[int, ...] = (
    21, 22, 23, 25, 53, 80, 110, 135, 139, 143,
    443, 445, 993, 995, 1433, 3306, 3389, 5432,
    5900, 6379, 8080, 8443, 27017,
)  # fmt: skip


def get_port_info(port: int) -> PortInfo:
    """Return the static label for a port, or the Unknown entry."""
    return WELL_KNOWN_PORTS.get(port, UNKNOWN_PORT)


def refine_port_info(port: int, banner: str | None) -> PortInfo:
    """Upgrade the port-based guess when the banner names a more specific service."""
    info = get_port_info(port)
    if not banner:
        return info
    lower = banner.lower()
    for refine_port, keywords, refined in _BANNER_REFINEMENTS:
        if refine_port == port and any(keyword in lower for keyword in keywords):
            return refined
    return info
