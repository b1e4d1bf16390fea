"""Hospital payroll core: attendance derivation, payroll calculation and revenue sharing."""

__version__ = "0.1.0"
