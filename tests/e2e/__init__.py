"""
Vehicle Registry E2E Test Suite

End-to-end browser tests using Playwright.

Structure:
    conftest.py               - Fixtures and configuration
    pages/                    - Page Object Models
    test_auth.py              - Login, logout and session tests
    test_profile.py           - Profile display tests
    test_vehicle_registry.py  - Filtered vehicle search tests
    test_negative.py          - Invalid input and no-results tests

Running Tests:
    # Install dependencies
    pip install -e ".[test]"
    playwright install

    # Run all tests on the configured browser matrix
    registry-e2e all

    # Run with visible browser
    registry-e2e all --headed

    # Run specific browser or device
    registry-e2e browser firefox
    registry-e2e browser webkit --device "iPhone 13"

    # Run one feature area
    registry-e2e suite vehicles

    # Generate HTML and JUnit reports
    registry-e2e report

    # Or call pytest directly
    pytest tests/e2e/ --browser chromium -m smoke
"""
