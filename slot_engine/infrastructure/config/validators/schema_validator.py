# slot_engine/infrastructure/config/validators/schema_validator.py
import jsonschema
import logging
from typing import Dict, Any, Tuple, List


class SchemaValidator:
    """
    Validates configuration data against JSON schemas.
    """
    def __init__(self):
        """Initialize the schema validator."""
        self.logger = logging.getLogger("infrastructure.config.validator")

    def validate(self, config: Dict[str, Any], schema: Dict[str, Any]) -> Tuple[bool, List[str]]:
        """
        Validate a configuration against a JSON schema.

        Every violation is reported, not only the first one, so a broken
        machine file can be fixed in a single pass.

        Args:
            config: The configuration dictionary to validate
            schema: The JSON schema to validate against

        Returns:
            Tuple of (is_valid, error_messages)
            - is_valid: Boolean indicating if validation passed
            - error_messages: List of error messages if validation failed
        """
        try:
            validator_cls = jsonschema.validators.validator_for(schema)
            validator_cls.check_schema(schema)
        except jsonschema.exceptions.SchemaError as e:
            # There's something wrong with the schema itself
            self.logger.error(f"Invalid schema: {e}")
            return False, [f"Schema error: {e.message}"]

        errors = []
        for error in sorted(validator_cls(schema).iter_errors(config), key=lambda e: [str(p) for p in e.path]):
            # Format error for better readability
            error_path = '.'.join(str(p) for p in error.path) if error.path else 'root'
            errors.append(f"At {error_path}: {error.message}")

        for message in errors:
            self.logger.error(f"Schema validation error: {message}")

        return not errors, errors
