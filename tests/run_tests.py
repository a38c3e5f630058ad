#!/usr/bin/env python3
import pytest

# Define the list of tests
tests_list = [
    "test_properties_data.py",
    "test_dilute_gas.py",
    "test_scaling_model.py",
    "test_params.py",
    "test_scaling_roundtrip.py",
    "test_model.py",
    "test_fitting.py",
]

# Run pytest when this python script is executed
pytest.main(tests_list + ["-v"])
