"""
Configuration for matcher registries.

Values come from defaults, then a YAML file, then a JSON file, then an
explicit dict, merged deeply in that order. Environment variables
(STYLEMATCH_<DOTTED_PATH>) take precedence on lookup.
"""
import copy
import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

ENV_PREFIX = "STYLEMATCH_"

FALLBACK_MODES = ['ignore', 'suggest-alternatives', 'diagnose']

DEFAULT_CONFIGURATION: Dict[str, Any] = {
    'matchers': {},
    'xslt_transforms': {},
    'plugins': [],
    'transforms': {
        'enabled': True,
        'cache_enabled': True,
        'max_cache_size': 100,
        'processors': ['lxml'],
        'default_processor': 'lxml',
        'transform_paths': ['./transforms'],
        'common_templates': False,
    },
    'error_handling': {
        'fallback_strategy': 'ignore',
        'strict_mode': False,
        'max_errors': 100,
    },
    'logging': {
        'level': 'INFO',
    },
}

DEFAULT_SCHEMA: Dict[str, Any] = {
    'type': 'object',
    'properties': {
        'matchers': {'type': 'object'},
        'xslt_transforms': {'type': 'object'},
        'plugins': {'type': 'array'},
        'transforms': {
            'type': 'object',
            'properties': {
                'enabled': {'type': 'boolean'},
                'cache_enabled': {'type': 'boolean'},
                'max_cache_size': {'type': 'number', 'min': 1, 'integer': True},
                'processors': {'type': 'array', 'itemSchema': {'type': 'string'}},
                'default_processor': {'type': 'string', 'minLength': 1},
                'transform_paths': {'type': 'array', 'itemSchema': {'type': 'string'}},
                'common_templates': {'type': 'boolean'},
            },
        },
        'error_handling': {
            'type': 'object',
            'properties': {
                'fallback_strategy': {'type': 'string', 'enum': FALLBACK_MODES},
                'strict_mode': {'type': 'boolean'},
                'max_errors': {'type': 'number', 'min': 0, 'integer': True},
            },
        },
        'logging': {'type': 'object'},
    },
}

_ENV_REFERENCE = re.compile(r"^\$\{([^}]+)\}$")


def merge_configurations(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge; nested dicts merge, everything else (lists included) is replaced."""
    merged = {}
    for key, value in base.items():
        if key in override:
            if isinstance(value, dict) and isinstance(override[key], dict):
                merged[key] = merge_configurations(value, override[key])
            else:
                merged[key] = override[key]
        else:
            merged[key] = value
    for key, value in override.items():
        if key not in base:
            merged[key] = value
    return merged


def _expand_env(value):
    if isinstance(value, str):
        match = _ENV_REFERENCE.match(value)
        if match:
            return os.getenv(match.group(1)) or value
    return value


def _resolve_path(value):
    if isinstance(value, str):
        return str(Path(value).resolve())
    return value


def _parse_json(value):
    if isinstance(value, str):
        try:
            return json.loads(value)
        except ValueError:
            return value
    return value


class MatcherConfiguration:
    def __init__(self,
                 env_file: Optional[str] = ".env",
                 yaml_file: Optional[str] = None,
                 json_file: Optional[str] = None,
                 config: Optional[Dict[str, Any]] = None,
                 validate: bool = True,
                 schema: Optional[Dict[str, Any]] = None):
        if env_file:
            load_dotenv(env_file)
        self._validate = validate
        self._schema = copy.deepcopy(DEFAULT_SCHEMA) if schema is None else schema
        self._validators: Dict[str, Callable[[Any, Dict[str, Any]], List[str]]] = {}
        self._transformers: Dict[str, Callable[[Any], Any]] = {}
        # Applied to every string value on load; others are applied on request
        self._auto_transformers = ['env']
        self._default_config = copy.deepcopy(DEFAULT_CONFIGURATION)
        self._config = copy.deepcopy(DEFAULT_CONFIGURATION)

        self._register_builtin_validators()
        self._register_builtin_transformers()

        self.yaml_config = self._load_yaml(yaml_file) if yaml_file else {}
        self.json_config = self._load_json(json_file) if json_file else {}

        sources = [self.yaml_config, self.json_config, config or {}]
        if any(sources):
            merged: Dict[str, Any] = {}
            for source in sources:
                merged = merge_configurations(merged, source)
            self.load_configuration(merged)

    def _load_yaml(self, file):
        with open(file) as f:
            return yaml.safe_load(f) or {}

    def _load_json(self, file):
        with open(file) as f:
            return json.load(f)

    # Loading

    def load_configuration(self, source: Any, fmt: Optional[str] = None) -> 'MatcherConfiguration':
        """
        Merge a configuration over the defaults.

        Args:
            source: A dict, a path to a .json/.yaml/.yml file, or a JSON/YAML string
            fmt: 'json' or 'yaml'; guessed from the file extension when omitted

        Raises:
            ValueError: If validation is enabled and the result is invalid
        """
        if isinstance(source, dict):
            config = source
        elif isinstance(source, (str, Path)):
            config = self._load_source(str(source), fmt)
        else:
            raise TypeError("Configuration source must be a dict, a file path or a configuration string")

        merged = merge_configurations(self._default_config, config)
        self._config = self._transform_configuration(merged)

        if self._validate:
            errors = self.validate_configuration(self._config)
            if errors:
                raise ValueError("Configuration validation failed:\n" + "\n".join(errors))

        logger.debug("Loaded matcher configuration with sections: %s", ', '.join(self._config))
        return self

    def _load_source(self, source: str, fmt: Optional[str]) -> Dict[str, Any]:
        if '\n' not in source and not source.lstrip().startswith(('{', '[')):
            path = Path(source)
            if not path.is_file():
                raise FileNotFoundError(f"Configuration file not found: {source}")
            fmt = fmt or path.suffix.lstrip('.') or 'json'
            return self._parse(path.read_text(encoding='utf-8'), fmt)
        return self._parse(source, fmt or 'json')

    @staticmethod
    def _parse(content: str, fmt: str) -> Dict[str, Any]:
        fmt = fmt.lower()
        if fmt == 'json':
            return json.loads(content)
        if fmt in ('yaml', 'yml'):
            return yaml.safe_load(content) or {}
        raise ValueError(f"Unsupported configuration format: {fmt}")

    def _transform_configuration(self, value: Any) -> Any:
        if isinstance(value, str):
            for name in self._auto_transformers:
                value = self._transformers[name](value)
            return value
        if isinstance(value, list):
            return [self._transform_configuration(v) for v in value]
        if isinstance(value, dict):
            return {k: self._transform_configuration(v) for k, v in value.items()}
        return value

    # Access

    def get(self, key_path: str, default: Any = None) -> Any:
        # Check ENV first
        env_key = ENV_PREFIX + key_path.upper().replace('.', '_').replace('-', '_')
        val = os.getenv(env_key)
        if val:
            value = yaml.safe_load(val)
            if self._validate:
                errors = self.validate_value(value, self._schema_for(key_path))
                if errors:
                    raise ValueError(f"Invalid value for {env_key}: " + "; ".join(errors))
            return value

        value = self._config
        for key in key_path.split('.'):
            if not isinstance(value, dict) or key not in value:
                return default
            value = value[key]
        return value

    def set(self, key_path: str, value: Any) -> 'MatcherConfiguration':
        keys = key_path.split('.')
        current = self._config
        for key in keys[:-1]:
            if not isinstance(current.get(key), dict):
                current[key] = {}
            current = current[key]
        current[keys[-1]] = value
        return self

    def get_configuration(self) -> Dict[str, Any]:
        return copy.deepcopy(self._config)

    def registry_config(self) -> Dict[str, Any]:
        """The slice consumed by MatcherRegistry.load_configuration."""
        return {
            'matchers': self.get('matchers', {}),
            'xslt_transforms': self.get('xslt_transforms', {}),
            'plugins': self.get('plugins', []),
        }

    # Validation

    def register_validator(self, name: str, validator: Callable[[Any, Dict[str, Any]], List[str]]) -> 'MatcherConfiguration':
        if not callable(validator):
            raise TypeError("Validator must be a function")
        self._validators[name] = validator
        return self

    def register_transformer(self, name: str, transformer: Callable[[Any], Any]) -> 'MatcherConfiguration':
        if not callable(transformer):
            raise TypeError("Transformer must be a function")
        self._transformers[name] = transformer
        return self

    def apply_transformer(self, name: str, value: Any) -> Any:
        if name not in self._transformers:
            raise KeyError(f"Unknown configuration transformer: {name}")
        return self._transformers[name](value)

    def define_schema(self, schema: Dict[str, Any]) -> 'MatcherConfiguration':
        self._schema = schema
        return self

    def validate_configuration(self, config: Optional[Dict[str, Any]] = None) -> List[str]:
        """Validate against the schema, returning every error found."""
        config = self._config if config is None else config
        if not self._schema:
            return []
        return self.validate_value(config, self._schema)

    def _schema_for(self, key_path: str) -> Dict[str, Any]:
        schema = self._schema or {}
        for key in key_path.split('.'):
            schema = (schema.get('properties') or {}).get(key)
            if not schema:
                return {}
        return schema

    def validate_value(self, value: Any, schema: Dict[str, Any]) -> List[str]:
        if not schema or not schema.get('type'):
            return []
        validator = self._validators.get(schema['type'])
        if validator is None:
            return [f"Unknown validator type: {schema['type']}"]
        return validator(value, schema)

    def _register_builtin_validators(self):
        self.register_validator('string', self._validate_string)
        self.register_validator('number', self._validate_number)
        self.register_validator('boolean', self._validate_boolean)
        self.register_validator('array', self._validate_array)
        self.register_validator('object', self._validate_object)

    def _register_builtin_transformers(self):
        self.register_transformer('env', _expand_env)
        self.register_transformer('path', _resolve_path)
        self.register_transformer('json', _parse_json)

    @staticmethod
    def _validate_string(value, constraints):
        if not isinstance(value, str):
            return ["Value must be a string"]
        errors = []
        if constraints.get('minLength') and len(value) < constraints['minLength']:
            errors.append(f"String must be at least {constraints['minLength']} characters")
        if constraints.get('maxLength') and len(value) > constraints['maxLength']:
            errors.append(f"String must be no more than {constraints['maxLength']} characters")
        if constraints.get('pattern') and not re.search(constraints['pattern'], value):
            errors.append(f"String must match pattern: {constraints['pattern']}")
        if constraints.get('enum') and value not in constraints['enum']:
            errors.append(f"String must be one of: {', '.join(constraints['enum'])}")
        return errors

    @staticmethod
    def _validate_number(value, constraints):
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value != value:
            return ["Value must be a number"]
        errors = []
        if constraints.get('min') is not None and value < constraints['min']:
            errors.append(f"Number must be at least {constraints['min']}")
        if constraints.get('max') is not None and value > constraints['max']:
            errors.append(f"Number must be no more than {constraints['max']}")
        if constraints.get('integer') and not float(value).is_integer():
            errors.append("Number must be an integer")
        return errors

    @staticmethod
    def _validate_boolean(value, constraints):
        if not isinstance(value, bool):
            return ["Value must be a boolean"]
        return []

    def _validate_array(self, value, constraints):
        if not isinstance(value, list):
            return ["Value must be an array"]
        errors = []
        if constraints.get('minItems') and len(value) < constraints['minItems']:
            errors.append(f"Array must have at least {constraints['minItems']} items")
        if constraints.get('maxItems') and len(value) > constraints['maxItems']:
            errors.append(f"Array must have no more than {constraints['maxItems']} items")
        item_schema = constraints.get('itemSchema')
        if item_schema:
            for i, item in enumerate(value):
                item_errors = self.validate_value(item, item_schema)
                if item_errors:
                    errors.append(f"Item {i}: {', '.join(item_errors)}")
        return errors

    def _validate_object(self, value, constraints):
        if not isinstance(value, dict):
            return ["Value must be an object"]
        errors = []
        for prop in constraints.get('required') or []:
            if prop not in value:
                errors.append(f"Missing required property: {prop}")
        properties = constraints.get('properties') or {}
        for prop, prop_schema in properties.items():
            if prop in value:
                prop_errors = self.validate_value(value[prop], prop_schema)
                if prop_errors:
                    errors.append(f"Property {prop}: {', '.join(prop_errors)}")
        if constraints.get('additionalProperties') is False:
            for prop in value:
                if prop not in properties:
                    errors.append(f"Unexpected property: {prop}")
        return errors

    # Matcher configs and export

    def create_matcher_config(self,
                              matcher_type: str,
                              template: Dict[str, Any],
                              options: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Build a registry matcher entry from a reusable template.

        Template keys: factory, defaultOptions, validation, description and
        transforms (callables or registered transformer names applied to the
        resulting entry in order).
        """
        merged_options = dict(template.get('defaultOptions') or {})
        merged_options.update(options or {})

        matcher_config = {
            'type': matcher_type,
            'factory': template.get('factory'),
            'options': merged_options,
            'validation': template.get('validation'),
            'description': template.get('description') or f"Custom matcher: {matcher_type}",
        }

        for transform in template.get('transforms') or []:
            if callable(transform):
                matcher_config = transform(matcher_config)
            elif isinstance(transform, str) and transform in self._transformers:
                matcher_config = self._transformers[transform](matcher_config)
        return matcher_config

    def export_configuration(self, fmt: str = 'json', include_defaults: bool = False, indent: int = 2) -> str:
        config = self._config if include_defaults else _remove_default_values(self._config, self._default_config)
        fmt = fmt.lower()
        if fmt == 'json':
            return json.dumps(config, indent=indent, default=str)
        if fmt in ('yaml', 'yml'):
            return yaml.safe_dump(config, default_flow_style=False, sort_keys=False, indent=indent)
        raise ValueError(f"Unsupported export format: {fmt}")


def _remove_default_values(config: Dict[str, Any], defaults: Dict[str, Any]) -> Dict[str, Any]:
    result = {}
    for key, value in config.items():
        if key in defaults:
            default = defaults[key]
            if isinstance(value, dict) and isinstance(default, dict):
                nested = _remove_default_values(value, default)
                if nested:
                    result[key] = nested
            elif value != default:
                result[key] = value
        else:
            result[key] = value
    return result
