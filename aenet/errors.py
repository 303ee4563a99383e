class AenetError(Exception):
    """Base class for every error the training pipeline reports."""


class ConfigurationError(AenetError):
    pass


class GraphConstructionError(AenetError):
    """Inner dimensions of two consecutive multiplies disagree."""


class BatchReshapeError(AenetError):
    pass


class ExecutionError(AenetError):
    """The forward or backward pass failed inside torch."""


class PersistenceError(AenetError):
    pass
