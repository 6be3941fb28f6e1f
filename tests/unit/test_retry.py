from config.routes import LlmRoute
from llm_gateway.errors import (
    ClientFailure,
    MissingCredentials,
    NetworkFailure,
    ParseFailure,
    RateLimited,
    SchemaViolation,
    ServerFailure,
    failure_for_status,
)
from llm_gateway.retry import RetryPolicy, is_retryable


def test_transient_failures_are_retryable():
    for exc in (NetworkFailure("x"), ServerFailure("x"), RateLimited("x"), ParseFailure("x"), SchemaViolation("x")):
        assert is_retryable(exc)


def test_permanent_failures_fail_fast():
    assert not is_retryable(ClientFailure("bad request", http_status=400))
    assert not is_retryable(MissingCredentials("no key"))
    assert not is_retryable(ValueError("unrelated"))


def test_failure_for_status():
    assert isinstance(failure_for_status(429, ""), RateLimited)
    assert isinstance(failure_for_status(503, ""), ServerFailure)
    assert isinstance(failure_for_status(404, ""), ClientFailure)
    assert failure_for_status(502, "").http_status == 502


def test_default_schedule_allows_three_attempts():
    policy = RetryPolicy()
    assert policy.attempts == 3
    assert policy.delay_before_retry(ServerFailure("x"), 0) == 1.5
    assert policy.delay_before_retry(ServerFailure("x"), 1) == 3.0
    assert policy.delay_before_retry(ServerFailure("x"), 2) is None
    assert policy.delay_before_retry(ClientFailure("x"), 0) is None


def test_schedule_from_route():
    route = LlmRoute(name="r", base_url="http://x", endpoint="/", model="m", max_retries=4, retry_delays_s=[1.0, 2.0])
    assert RetryPolicy.for_route(route).delays == (1.0, 2.0, 2.0, 2.0)
    route = LlmRoute(name="r", base_url="http://x", endpoint="/", model="m", max_retries=0)
    assert RetryPolicy.for_route(route).attempts == 1
