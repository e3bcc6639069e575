"""RouterOS record types the blocker can manage."""

from dataclasses import dataclass

from .config import Settings
from .exceptions import ConfigurationError


def quote_value(value: str) -> str:
    """Quote a value for a RouterOS script, escaping backslash, quote and dollar."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("$", "\\$")
    return f'"{escaped}"'


@dataclass(frozen=True)
class RecordTarget:
    """
    Describes one RouterOS menu holding blocked hostnames.

    Attributes:
        name: Target identifier used on the command line
        path: Menu path, e.g. '/ip/dns/static'
        key_field: Field carrying the hostname
        managed_filter: (field, value) pairs identifying records owned by the blocker
        add_fields: Static fields sent with every add call
        default_strategy: Apply strategy used when 'auto' is selected
    """

    name: str
    path: str
    key_field: str
    managed_filter: tuple[tuple[str, str], ...]
    add_fields: tuple[tuple[str, str], ...]
    default_strategy: str

    @property
    def script_header(self) -> str:
        """Context-switch line of an import script, e.g. '/ip dns static'."""
        return "/" + " ".join(self.path.strip("/").split("/"))

    def add_params(self, hostname: str) -> dict[str, str]:
        """Parameters of an add call for hostname."""
        params = dict(self.add_fields)
        params[self.key_field] = hostname
        return params

    def script_line(self, hostname: str) -> str:
        """Add directive for hostname in an import script, values quoted."""
        fields = " ".join(
            f"{key}={quote_value(value)}" for key, value in self.add_params(hostname).items()
        )
        return f"add {fields}"


def get_target(settings: Settings) -> RecordTarget:
    """
    Build the record target selected by settings.

    Raises:
        ConfigurationError: If the target name is unknown
    """
    if settings.target == "dns-static":
        return RecordTarget(
            name="dns-static",
            path="/ip/dns/static",
            key_field="name",
            managed_filter=(("comment", settings.tag),),
            add_fields=(("address", settings.sink_address), ("comment", settings.tag)),
            default_strategy="scripted",
        )
    if settings.target == "address-list":
        return RecordTarget(
            name="address-list",
            path="/ip/firewall/address-list",
            key_field="address",
            managed_filter=(
                ("list", settings.list_name),
                ("comment", settings.tag),
                ("dynamic", "false"),
            ),
            add_fields=(("list", settings.list_name), ("comment", settings.tag)),
            default_strategy="direct",
        )
    raise ConfigurationError(f"Unknown target '{settings.target}'")
