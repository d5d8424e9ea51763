class RunnerError(Exception):
    """Base error for everything raised while loading or executing test cases.

    `step` is filled in once the error reaches a step boundary. `recorded` is
    set after the outcome has been written to the execution summary so outer
    frames (module steps) do not record it twice.
    """

    def __init__(self, message: str, step: int | None = None):
        super().__init__(message)
        self.message = message
        self.step = step
        self.recorded = False

    def __str__(self) -> str:
        if self.step is None:
            return self.message
        return f"Step {self.step}: {self.message}"


class UnsupportedLocatorStrategy(RunnerError):
    def __init__(self, raw_type, step: int | None = None):
        super().__init__(f"Unsupported locatorPathType: {raw_type!r}", step=step)
        self.raw_type = raw_type


class UnsupportedActionType(RunnerError):
    def __init__(self, action_type, available: list[str], step: int | None = None):
        super().__init__(
            f"Unsupported actionType: {action_type!r}. Available actions: {', '.join(available)}",
            step=step,
        )
        self.action_type = action_type
        self.available = available


class MissingRequiredField(RunnerError):
    pass


class DriverOperationFailed(RunnerError):
    """Wraps any browser automation error (timeouts, failed expectations, closed pages)."""


class ModuleError(RunnerError):
    def __init__(self, message: str, module_name: str, step: int | None = None):
        super().__init__(message, step=step)
        self.module_name = module_name


class ModuleNotFound(ModuleError):
    def __init__(self, module_name: str, available: list[str]):
        listed = ", ".join(available) if available else "(none)"
        super().__init__(
            f"Module '{module_name}' not found: no '{module_name}_Start' marker. Available modules: {listed}",
            module_name,
        )
        self.available = available


class ModuleUnterminated(ModuleError):
    def __init__(self, module_name: str):
        super().__init__(f"Module '{module_name}' has no '{module_name}_End' marker after its start", module_name)


class ModuleMalformed(ModuleError):
    def __init__(self, module_name: str, start: int, end: int):
        super().__init__(
            f"Module '{module_name}' markers are out of order (start row {start}, end row {end})", module_name
        )


class ModuleEmpty(ModuleError):
    def __init__(self, module_name: str):
        super().__init__(f"Module '{module_name}' has no steps between its markers", module_name)


class ModuleCycle(ModuleError):
    def __init__(self, module_name: str, chain: list[str]):
        super().__init__(f"Module '{module_name}' references itself: {' -> '.join(chain)}", module_name)
        self.chain = chain


class ModuleDepthExceeded(ModuleError):
    def __init__(self, module_name: str, max_depth: int, chain: list[str]):
        super().__init__(
            f"Module '{module_name}' exceeds the maximum nesting depth of {max_depth}: {' -> '.join(chain)}",
            module_name,
        )
        self.max_depth = max_depth
        self.chain = chain


class DuplicateTestCase(RunnerError):
    def __init__(self, name: str):
        super().__init__(f"Test case '{name}' was already started in this run")
        self.name = name


class TestDataError(RunnerError):
    """Fatal startup problem with the workbook (missing file, sheet or data)."""

    __test__ = False


class NoTestCasesFound(TestDataError):
    def __init__(self, prefix: str, available: list[str]):
        super().__init__(
            f"No test cases found matching filter '{prefix}'. Available sheets: {', '.join(available)}"
        )
        self.prefix = prefix
        self.available = available
