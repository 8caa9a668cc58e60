"""League rating domain: calculators and update workflows."""
