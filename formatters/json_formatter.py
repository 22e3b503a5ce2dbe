"""JSON renderer: identity serialization of the documentation aggregate."""

import json

from models import OutputFormat, WorkspaceDocumentation
from .base import NO_CONTENT_MESSAGE, BaseFormatter


class JsonFormatter(BaseFormatter):
    """Pretty-printed JSON with keys in model field order."""

    format_id = OutputFormat.JSON
    file_extension = 'json'

    def render(self, documentation: WorkspaceDocumentation) -> str:
        data = documentation.to_dict()
        if documentation.is_empty:
            data['message'] = NO_CONTENT_MESSAGE
        return json.dumps(data, indent=2, ensure_ascii=False) + '\n'
