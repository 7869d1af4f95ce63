import importlib.resources
import logging
import os
from pathlib import Path

log = logging.getLogger(__name__)


class Loader:
    def __init__(self, reload=False):  # noqa: FBT002
        self._reload = reload
        self.modules = {}

    def import_(self, name, **kwargs):
        """Returns the template if it is already in the cache,
        else loads the template, caches it and returns it.
        """
        mod = self.modules.get(name)
        if not self._reload and mod:
            return mod
        log.debug("loading template %s", name)
        mod = self._load(name, **kwargs)
        self.modules[name] = mod
        return mod

    def _load(self, name, **kwargs):  # pragma no cover
        msg = f"{self.__class__.__name__} cannot load {name!r}"
        raise FileNotFoundError(msg)

    @property
    def load(self):
        return self.import_


class MockLoader(Loader):
    """Serves templates from a dict of names to template classes or sources."""

    def __init__(self, modules):
        super().__init__()
        from fmtools.text import Template

        for name, mod in modules.items():
            if isinstance(mod, str):
                mod = Template(source=mod, filename=name)
            self.modules[name] = mod


class FileLoader(Loader):
    def __init__(
        self,
        path,
        reload=False,  # noqa: FBT002
        encoding="utf-8",
        base_globals=None,
    ):
        super().__init__(reload=reload)
        if isinstance(path, str):
            self.path = path.split(";")
        elif isinstance(path, Path):
            self.path = [path]
        else:
            self.path = path
        self._encoding = encoding
        self._base_globals = base_globals

    def _filename(self, name: str) -> Path:
        """Get the filename of the requested resource."""
        for base in self.path:
            path = Path(base) / name
            if path.is_file():
                return path

        msg = f"{name} not found in any of {self.path}"
        raise FileNotFoundError(msg)

    def _find_resource(self, name: str) -> Path:
        """Locate the loadable resource and return a Path to it."""
        return self._filename(name)

    def _load(self, name, encoding=None, **kwargs):
        """Load a template from file."""
        from fmtools.text import Template

        resource = self._find_resource(name)
        source = resource.read_text(encoding=encoding or self._encoding)
        kwargs.setdefault("base_globals", self._base_globals)
        return Template(source=source, filename=str(resource), **kwargs)


class PackageLoader(FileLoader):
    """Loads ``package.name`` from the files shipped inside ``package``."""

    extensions = (".fmt", ".txt")

    def __init__(self, reload=False, encoding="utf-8", base_globals=None):  # noqa: FBT002
        super().__init__(None, reload=reload, encoding=encoding, base_globals=base_globals)

    def _find_resource(self, name):
        package, module = name.rsplit(".", 1)
        package_resource = importlib.resources.files(package)

        if package_resource.is_file():
            msg = f"{package} refers to a module, not a package."
            raise OSError(msg)

        for resource in package_resource.iterdir():
            if not resource.is_file():
                continue

            root, ext = os.path.splitext(resource.name)
            if root == module and ext in self.extensions:
                return resource

        msg = f"Unknown template {name!r}"
        raise FileNotFoundError(msg)
