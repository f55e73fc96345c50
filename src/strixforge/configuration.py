#
# Strixforge
# Copyright 2025 Dave Weinstein
# All rights reserved.
#

import json
import jsonschema
import os
import pathlib
import typing

import strixforge.error


class Namespace(dict):
    """Dictionary subclass which exposes its key: value pairs as attributes."""

    def __init__(self, **kwargs: typing.Any) -> None:
        super().__init__(kwargs)

    def __getattr__(self, name: str) -> typing.Any:
        return self.get(name)


class Configuration(object):
    """Strixforge configuration."""

    _schema = {
        "type": "object",
        "additionalProperties": False,
        "properties": {
            "skip": {
                "type": "array",
                "items": {
                    "type": "string"
                }
            },
            "packages": {
                "type": "object",
                "additionalProperties": False,
                "properties": {
                    "extra": {
                        "type": "array",
                        "items": {
                            "type": "string"
                        }
                    }
                }
            },
            "containers": {
                "type": "object",
                "additionalProperties": False,
                "properties": {
                    "user": {
                        "type": "string"
                    },
                    "gpu_gid": {
                        "type": "integer",
                        "minimum": 0
                    },
                    "nesting": {
                        "type": "boolean"
                    }
                }
            }
        }
    }

    _defaults = {
        "skip": [],
        "packages": {
            "extra": []
        },
        "containers": {
            "user": None,
            "gpu_gid": 110,
            "nesting": True
        }
    }

    def __init__(self, path: pathlib.Path = None) -> None:
        if path is None:
            path = Configuration.default_path()

        # The configuration file is optional, every setting has a default.
        try:
            with open(path, "r") as f:
                instance = json.load(f)
        except FileNotFoundError:
            instance = {}
        except (OSError, ValueError) as e:
            raise strixforge.error.InitializationError(
                f"Failed to read configuration file {path}: {e}")

        # Validate the configuration file using JSON Schema.
        try:
            jsonschema.validate(instance, Configuration._schema)
        except jsonschema.exceptions.ValidationError as e:
            raise strixforge.error.InitializationError(
                f"Invalid configuration: {e.message}")

        self.path = path
        self._instance = _namespace(_merge(Configuration._defaults, instance))

    def __getattr__(self, name: str) -> typing.Any:
        return getattr(self._instance, name)

    @staticmethod
    def default_path() -> pathlib.Path:
        """
        Returns the path of the configuration file in the first (most
        important) configuration directory.  Falls back on /etc/xdg if no
        directory is defined.  See also https://specifications.freedesktop.org/
        basedir-spec/basedir-spec-latest.html.
        """
        xdg_config_dirs = os.getenv("XDG_CONFIG_DIRS")
        xdg_config_dir = xdg_config_dirs.split(":")[0] \
            if xdg_config_dirs else "/etc/xdg"
        return pathlib.Path(xdg_config_dir) / "strixforge" / "strixforge.conf"


def _merge(
        defaults: typing.Mapping[str, typing.Any],
        overrides: typing.Mapping[str, typing.Any]) -> typing.Dict[
            str, typing.Any]:
    result = dict(defaults)

    for name, value in overrides.items():
        if isinstance(value, typing.Mapping) and \
                isinstance(result.get(name), typing.Mapping):
            result[name] = _merge(result[name], value)
        else:
            result[name] = value

    return result


def _namespace(root: typing.Any) -> typing.Any:
    if isinstance(root, typing.Mapping):
        return Namespace(
            **{name: _namespace(value) for name, value in root.items()})

    return root
