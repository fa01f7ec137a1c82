"""
Scoring errors - one exception per failure the engine can report.

Every error carries a stable ``code`` so batch reports and API responses can
expose the failure kind without leaking Python class names.
"""


class ScoringError(Exception):
    """Base class for all scoring engine failures."""

    code = "scoring_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidProfile(ScoringError):
    """Profile has no enabled factors, a weight outside 1-10, or is locked."""

    code = "invalid_profile"


class UnknownFactor(ScoringError):
    """A factor id is not present in the registry."""

    code = "unknown_factor"

    def __init__(self, factor_id: str):
        super().__init__(f"Unknown factor: {factor_id!r}")
        self.factor_id = factor_id


class UnknownCategoryValue(ScoringError):
    """A categorical raw value has no entry in the factor's mapping table."""

    code = "unknown_category_value"

    def __init__(self, factor_id: str, value):
        super().__init__(f"No score mapping for {factor_id!r} value {value!r}")
        self.factor_id = factor_id
        self.value = value


class InvalidAttributeValue(ScoringError):
    """A raw value has the wrong type or falls outside the factor's range."""

    code = "invalid_attribute_value"

    def __init__(self, factor_id: str, value, reason: str):
        super().__init__(f"Invalid value {value!r} for {factor_id!r}: {reason}")
        self.factor_id = factor_id
        self.value = value


class UnknownPreset(ScoringError):
    code = "unknown_preset"

    def __init__(self, preset_name: str):
        super().__init__(f"Unknown preset: {preset_name!r}")
        self.preset_name = preset_name


class DuplicateFactorId(ScoringError):
    code = "duplicate_factor_id"

    def __init__(self, factor_id: str):
        super().__init__(f"Factor already registered: {factor_id!r}")
        self.factor_id = factor_id


class DuplicateEntityId(ScoringError):
    code = "duplicate_entity_id"

    def __init__(self, entity_id: str):
        super().__init__(f"Entity appears more than once in batch: {entity_id!r}")
        self.entity_id = entity_id
