"""
Clinic Staffing Monitor - Test Suite

Structure:
    conftest.py: pinned dates, clinic/shift factories, sample rota pages,
        in-memory SQLite sessions
    unit/: one module per component; HTTP goes through httpx.MockTransport

Running Tests:
    pip install -e ".[test]"
    pytest
    pytest tests/unit/test_dates.py -v
"""
