class PipelineError(Exception):
    """Base exception for all errors raised by the classification pipeline."""
    pass

class SchemaError(PipelineError):
    """
    Exception raised when an input table does not have the expected shape.

    Attributes:
        table_name -- The name of the offending table
        detail -- What was wrong with it
    """
    def __init__(self, table_name, detail):
        self.table_name = table_name
        self.detail = detail
        super().__init__(f"Schema mismatch in {table_name}: {detail}")

class ConfigurationError(PipelineError):
    """Exception raised for errors related to application configuration."""
    pass

class DecompositionError(ConfigurationError):
    """Exception raised when the occupation-by-skill matrix cannot be decomposed."""
    pass
