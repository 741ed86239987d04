"""
Storage URL resolution for hotel assets.

Every image on the sites is addressed as a (container, path) pair and
rendered through the public object URL of the current storage project:

    <base>/storage/v1/object/public/<container>/<path>

The resolver owns that addressing scheme. Building, parsing and translating
URLs are pure and total - they run on every render of every asset, so they
never raise and never touch the network. Only resolve_with_fallback does I/O,
and it degrades to the legacy address instead of failing.

Earlier storage projects used the same path shape under a different host.
Those hosts are configured as legacy base addresses so old URLs keep working.
"""

import logging
import re
from dataclasses import dataclass
from typing import Iterable, NamedTuple, Optional, Protocol

logger = logging.getLogger(__name__)

PUBLIC_OBJECT_PATH = "/storage/v1/object/public"


# ---------------------------------------------------------------------------
# Protocols (interfaces)
# ---------------------------------------------------------------------------

class UrlProbe(Protocol):
    """
    Interface for cheap existence checks against a URL.

    Implementations issue a metadata-only request (HEAD) and report whether
    the response was a success. They may raise on transport errors; callers
    in this package treat an exception the same as a miss.
    """

    async def exists(self, url: str) -> bool:
        """Return True if the URL answered with a success status."""
        ...


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------

class StorageAddress(NamedTuple):
    """A (container, path) pair inside object storage."""
    container: str
    path: str


@dataclass(frozen=True)
class ResolverConfig:
    """
    Addressing configuration for the resolver.

    Passed in explicitly rather than read from the environment, so tests
    and tools can build resolvers for any project.
    """
    base_url: str
    containers: tuple[str, ...]
    default_container: str
    legacy_base_urls: tuple[str, ...] = ()
    public_path: str = PUBLIC_OBJECT_PATH

    def __post_init__(self) -> None:
        if not self.base_url:
            raise ValueError("base_url is required")
        if not self.containers:
            raise ValueError("At least one container is required")
        if self.default_container not in self.containers:
            raise ValueError(
                f"Default container '{self.default_container}' is not a valid container"
            )
        # normalise so URL joins never produce double slashes
        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))
        object.__setattr__(self, "containers", tuple(self.containers))
        object.__setattr__(
            self,
            "legacy_base_urls",
            tuple(url.rstrip("/") for url in self.legacy_base_urls),
        )


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------

class StorageUrlResolver:
    """
    Builds, parses and translates public storage URLs.

    The resolver is immutable after construction and safe to share across
    any number of concurrent callers.
    """

    def __init__(self, config: ResolverConfig, probe: Optional[UrlProbe] = None) -> None:
        self._config = config
        self._probe = probe

        public_path = re.escape(config.public_path)
        self._address_pattern = re.compile(rf"{public_path}/([^/?#]+)/([^?#]+)")

        self._legacy_pattern: Optional[re.Pattern[str]] = None
        if config.legacy_base_urls:
            hosts = "|".join(re.escape(url) for url in config.legacy_base_urls)
            self._legacy_pattern = re.compile(rf"^(?:{hosts}){public_path}/([^/?#]+)/(.+)$")

    @property
    def config(self) -> ResolverConfig:
        return self._config

    def validate_container(self, container: str) -> str:
        """Return the container if valid, otherwise the default container."""
        if container in self._config.containers:
            return container

        logger.warning(
            "Invalid container name, using default container",
            extra={
                "container": container,
                "default_container": self._config.default_container,
            }
        )
        return self._config.default_container

    def build_url(self, container: str, path: str) -> str:
        """
        Build the public URL for an object in the current project.

        Unknown containers are replaced by the default container. One leading
        slash is stripped from the path; anything else is passed through.
        A missing path is treated as empty.
        """
        return self._build(self._config.base_url, container, path)

    def legacy_url(self, container: str, path: str) -> str:
        """
        Build the public URL for an object under the first legacy project.

        Falls back to the current project when no legacy base is configured.
        """
        if not self._config.legacy_base_urls:
            return self.build_url(container, path)
        return self._build(self._config.legacy_base_urls[0], container, path)

    def translate_legacy_url(self, url: str) -> str:
        """
        Rewrite a legacy-project URL to the current project.

        Returns the input unchanged when it is not a legacy storage URL.
        """
        if self._legacy_pattern is None or not isinstance(url, str):
            return url

        match = self._legacy_pattern.match(url)
        if not match:
            return url

        container, path = match.groups()
        return self.build_url(container, path)

    def translate_legacy_urls(self, urls: Iterable[str]) -> list[str]:
        """Batch form of translate_legacy_url."""
        return [self.translate_legacy_url(url) for url in urls]

    def parse_address(self, url: str) -> Optional[StorageAddress]:
        """
        Extract (container, path) from any public storage URL.

        Returns None when the URL does not have the storage object shape.
        Query strings and fragments are not part of the path.
        """
        if not isinstance(url, str):
            return None

        match = self._address_pattern.search(url)
        if not match:
            return None

        container, path = match.groups()
        return StorageAddress(container=container, path=path)

    def is_storage_url(self, url: str) -> bool:
        """Whether the URL points at a public storage object."""
        return self.parse_address(url) is not None

    async def resolve_with_fallback(
        self,
        container: str,
        path: str,
        probe: Optional[UrlProbe] = None,
    ) -> str:
        """
        Return the current URL if it answers, otherwise the legacy URL.

        Issues at most one probe against the current project. Any probe outcome
        other than success resolves to the legacy URL, and so does having no
        probe at all. The caller is responsible for a final placeholder if the
        legacy URL fails too.
        """
        current_url = self.build_url(container, path)

        if not self._config.legacy_base_urls:
            return current_url

        probe = probe or self._probe
        if probe is None:
            logger.warning(
                "No storage probe configured, falling back to legacy URL",
                extra={"container": container, "path": path}
            )
            return self.legacy_url(container, path)

        try:
            if await probe.exists(current_url):
                return current_url
        except Exception as e:
            logger.warning(
                "Storage probe failed, falling back to legacy URL",
                extra={"container": container, "path": path, "error": str(e)}
            )
            return self.legacy_url(container, path)

        logger.info(
            "Object missing in current project, falling back to legacy URL",
            extra={"container": container, "path": path}
        )
        return self.legacy_url(container, path)

    def _build(self, base_url: str, container: str, path: str) -> str:
        container = self.validate_container(container)
        if not isinstance(path, str):
            path = "" if path is None else str(path)
        clean_path = path[1:] if path.startswith("/") else path
        return f"{base_url}{self._config.public_path}/{container}/{clean_path}"
