"""Sample test run and analysis used by the demo and the /demo endpoint."""

SAMPLE_INPUT = """FAIL tests/auth/login.test.ts
  ● Login Flow › should handle expired JWT tokens gracefully
    TypeError: Cannot read properties of undefined (reading 'exp')
      at validateToken (src/auth/jwt.ts:42:18)
      at processLogin (src/auth/login.ts:67:12)

FAIL tests/api/users.test.ts
  ● GET /api/users › should return 403 for unauthorized requests
    Expected: 403
    Received: 200
    at Object.<anonymous> (tests/api/users.test.ts:23:5)

  ● POST /api/users › should validate email format
    Expected: 400
    Received: 201
    at Object.<anonymous> (tests/api/users.test.ts:45:5)

PASS tests/api/health.test.ts (3 tests)
PASS tests/utils/format.test.ts (8 tests)
PASS tests/components/Button.test.tsx (5 tests)

Test Suites: 2 failed, 3 passed, 5 total
Tests:       3 failed, 16 passed, 19 total"""

SAMPLE_RESULT = {
    "bug_report": {
        "bugs": [
            {
                "title": "JWT Token Validation Crash on Undefined Payload",
                "severity": "critical",
                "description": "validateToken crashes when the token payload is undefined, raising a TypeError on the exp property.",
                "root_cause": "Missing null check on the decoded JWT payload before reading exp at jwt.ts:42.",
                "suggested_fix": "Return an invalid-token result when the payload or payload.exp is missing.",
            },
            {
                "title": "Missing Authorization Check on GET /api/users",
                "severity": "high",
                "description": "GET /api/users returns 200 instead of 403 for unauthorized requests.",
                "root_cause": "The auth middleware is not applied to the GET route handler.",
                "suggested_fix": "Apply the auth middleware to every handler in the users route.",
            },
            {
                "title": "Email Validation Not Enforced on User Creation",
                "severity": "medium",
                "description": "POST /api/users accepts invalid email formats and returns 201 instead of 400.",
                "root_cause": "The email validation schema is missing from the request body validation.",
                "suggested_fix": "Validate the email field before the handler runs.",
            },
        ],
        "total_bugs": 3,
        "critical_count": 1,
        "high_count": 1,
        "medium_count": 1,
        "low_count": 0,
        "summary": "Found 3 bugs across 2 failing test suites: a critical JWT crash, a high-severity auth bypass and a medium validation gap.",
    },
    "test_report": {
        "test_summary": {"total_tests": 19, "passed": 16, "failed": 3, "pass_rate": "84.2%"},
        "severity_breakdown": [
            {"severity": "critical", "count": 1, "details": "JWT token validation crash causing runtime TypeError"},
            {"severity": "high", "count": 1, "details": "Authorization bypass on user listing endpoint"},
            {"severity": "medium", "count": 1, "details": "Missing email validation on user creation"},
        ],
        "coverage_observations": "Failures are concentrated in authentication and authorization paths; utility and component suites pass.",
        "recommended_actions": [
            {"action": "Fix JWT null check in src/auth/jwt.ts", "priority": "critical", "reason": "Runtime crash affects all authenticated users"},
            {"action": "Apply auth middleware to GET /api/users", "priority": "high", "reason": "Data exposure risk"},
            {"action": "Add email validation to user creation", "priority": "medium", "reason": "Allows malformed emails"},
            {"action": "Add integration tests for auth flow", "priority": "low", "reason": "Improve coverage of authentication edge cases"},
        ],
        "ci_verdict": {
            "status": "deploy_blocked",
            "reasoning": "A critical crash in JWT validation and a high-severity authorization bypass must be fixed before merging.",
        },
    },
}
