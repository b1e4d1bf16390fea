"""HTTP API for the hospital payroll core."""
