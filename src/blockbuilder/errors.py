"""Exception definitions for BlockBuilder"""


class BlockBuilderException(Exception):
    """Base exception for all BlockBuilder errors.

    All custom exceptions in the package inherit from this class. Use it as a
    catch-all when the specific failure does not matter to the caller.
    """

    pass


class ConfigException(BlockBuilderException):
    """Raised when configuration validation or loading fails.

    Use this exception when:
    - The configuration file cannot be found
    - The TOML syntax is invalid
    - Configuration validation fails (missing required fields, invalid values)
    """

    pass


class SchemaException(BlockBuilderException):
    """Raised when a field or form schema cannot be loaded.

    Use this exception when:
    - A schema file is missing or cannot be parsed
    - A repeater field has no item fields, or a scalar field declares some
    - Field names are duplicated inside one record
    """

    pass


class ComponentNotFound(BlockBuilderException):
    pass


class BlockNotFound(BlockBuilderException):
    pass


class BlockLocked(BlockBuilderException):
    """Raised when a locked block is asked to change."""

    pass


class BlockValidationError(BlockBuilderException):
    """Raised when block props fail validation.

    The flat path-keyed error map is kept on ``errors`` so callers can route
    it back into a form.
    """

    def __init__(self, errors: dict[str, list[str]]):
        self.errors = errors
        super().__init__(
            f"Block validation failed: {', '.join(sorted(errors)) or 'unknown'}"
        )
