"""fmtools public API."""

from fmtools.display import fmt
from fmtools.join import join
from fmtools.loader import FileLoader, MockLoader, PackageLoader
from fmtools.sink import Sink, StreamSink, StringSink
from fmtools.template import TemplateError, TemplateSyntaxError
from fmtools.text import Template
from fmtools.version import __release__, __version__

__all__ = [
    "fmt",
    "join",
    "Template",
    "TemplateError",
    "TemplateSyntaxError",
    "Sink",
    "StringSink",
    "StreamSink",
    "MockLoader",
    "FileLoader",
    "PackageLoader",
    "__version__",
    "__release__",
]
