from __future__ import annotations

from pathlib import Path

import yaml


class LiteralDumper(yaml.SafeDumper):
    """Custom YAML Dumper that uses block style for multiline strings."""
    def represent_scalar(self, tag, value, style=None):
        if "\n" in value and tag == 'tag:yaml.org,2002:str':
            style = '|'
        return super().represent_scalar(tag, value, style)


def dump_yaml(data: object, path: Path | None = None) -> str:
    text = yaml.dump(data, Dumper=LiteralDumper, sort_keys=False, allow_unicode=True)
    if path is not None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    return text
