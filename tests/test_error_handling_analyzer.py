"""
Error Handling Analyzer Tests
=============================
Async functions without try/catch and ``.then`` chains without a
rejection handler.
"""

import textwrap

import pytest

from prodready.analyzers.error_handling import (
    DATABASE_MESSAGE,
    DEFAULT_MESSAGE,
    MULTI_AWAIT_MESSAGE,
    PAYMENT_MESSAGE,
    PROMISE_MESSAGE,
    ErrorHandlingAnalyzer,
)
from prodready.model import Category, Severity
from prodready.model.context import Context
from prodready.source.parser import parse


@pytest.fixture
def analyzer():
    return ErrorHandlingAnalyzer()


def analyze(analyzer, code: str, file_id: str = "src/service.js", context: Context | None = None):
    tree = parse(textwrap.dedent(code), file=file_id)
    return analyzer.analyze(tree, context or Context(), file_id)


# ============================================================================
# no-error-handling
# ============================================================================

class TestAsyncFunctions:

    def test_async_without_try(self, analyzer):
        issues = analyze(analyzer, """
            async function loadProfile(id) {
              const profile = await fetchProfile(id);
              return profile;
            }
        """)
        assert len(issues) == 1
        issue = issues[0]
        assert issue.type == "no-error-handling"
        assert issue.severity == Severity.HIGH
        assert issue.category == Category.RELIABILITY
        assert issue.message == DEFAULT_MESSAGE
        assert issue.line == 2
        assert issue.context["function_name"] == "loadProfile"

    def test_database_message(self, analyzer):
        issues = analyze(analyzer, """
            async function getUser(id) {
              return await db.findById(id);
            }
        """)
        assert issues[0].message == DATABASE_MESSAGE

    def test_multiple_awaits_message(self, analyzer):
        issues = analyze(analyzer, """
            const sync = async () => {
              const a = await fetchA();
              const b = await fetchB();
              return [a, b];
            };
        """)
        assert issues[0].message == MULTI_AWAIT_MESSAGE
        assert issues[0].context["function_name"] == "sync"

    def test_payment_function_is_critical(self, analyzer):
        issues = analyze(analyzer, """
            async function processPayment(amount, token) {
              const charge = await stripe.charges.create({ amount, source: token });
              return charge;
            }
        """)
        assert issues[0].severity == Severity.CRITICAL
        assert issues[0].message == PAYMENT_MESSAGE
        assert issues[0].context["is_payment"] is True

    def test_payment_context_is_critical(self, analyzer):
        issues = analyze(analyzer, """
            async function run() {
              await step();
            }
        """, context=Context(is_payment_code=True))
        assert issues[0].severity == Severity.CRITICAL

    def test_class_method(self, analyzer):
        issues = analyze(analyzer, """
            class Repo {
              async save(item) {
                await this.store.put(item);
              }
            }
        """)
        assert len(issues) == 1
        assert issues[0].context["function_name"] == "save"


class TestAsyncFunctionsIgnored:

    def test_try_catch_present(self, analyzer):
        issues = analyze(analyzer, """
            async function loadProfile(id) {
              try {
                return await fetchProfile(id);
              } catch (error) {
                return null;
              }
            }
        """)
        assert issues == []

    def test_no_await(self, analyzer):
        issues = analyze(analyzer, """
            async function constant() {
              return 42;
            }
        """)
        assert issues == []

    def test_await_only_in_nested_function(self, analyzer):
        issues = analyze(analyzer, """
            async function outer() {
              try {
                await Promise.all(items.map(async (item) => {
                  try { await save(item); } catch (e) { log(e); }
                }));
              } catch (err) {
                log(err);
              }
            }
        """)
        assert issues == []

    def test_wrapped_in_async_handler(self, analyzer):
        issues = analyze(analyzer, """
            router.get('/users', asyncHandler(async (req, res) => {
              res.json(await User.findAll());
            }));
        """)
        assert issues == []

    def test_custom_wrapper(self):
        analyzer = ErrorHandlingAnalyzer(extra_wrappers=("safe",))
        issues = analyze(analyzer, """
            const handler = safe(async () => {
              await work();
            });
        """)
        assert issues == []


# ============================================================================
# unhandled-promise
# ============================================================================

class TestPromiseChains:

    def test_then_without_catch(self, analyzer):
        issues = analyze(analyzer, """
            fetchData().then((data) => render(data));
        """)
        assert len(issues) == 1
        assert issues[0].type == "unhandled-promise"
        assert issues[0].message == PROMISE_MESSAGE
        assert issues[0].severity == Severity.HIGH

    def test_chained_thens_report_once(self, analyzer):
        issues = analyze(analyzer, """
            fetchData()
              .then((res) => res.json())
              .then((data) => render(data));
        """)
        assert len(issues) == 1

    def test_catch_chained(self, analyzer):
        issues = analyze(analyzer, """
            fetchData().then((data) => render(data)).catch((err) => report(err));
        """)
        assert issues == []

    def test_rejection_handler_argument(self, analyzer):
        issues = analyze(analyzer, """
            fetchData().then((data) => render(data), (err) => report(err));
        """)
        assert issues == []

    def test_catch_as_next_statement(self, analyzer):
        issues = analyze(analyzer, """
            const p = fetchData();
            p.then((data) => render(data));
            p.catch((err) => report(err));
        """)
        assert issues == []
