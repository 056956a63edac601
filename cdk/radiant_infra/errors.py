class ConfigurationError(ValueError):
    """Raised when CDK context values cannot describe a deployment."""


class GraphError(Exception):
    """Base class for problems in a synthesized resource graph."""


class DanglingReferenceError(GraphError):

    def __init__(self, references):
        self.references = list(references)
        details = ", ".join(f"{source} -> {target}" for source, target in self.references)
        super().__init__(f"Unresolvable references: {details}")


class DependencyCycleError(GraphError):

    def __init__(self, cycle):
        self.cycle = list(cycle)
        super().__init__(f"Dependency cycle: {' -> '.join(self.cycle)}")
