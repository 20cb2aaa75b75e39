"""
Tests for retrying operations on transient storage failures.
"""

from unittest.mock import Mock
from django.db import OperationalError
from django.test import SimpleTestCase, override_settings

from ..exceptions import AlreadyClaimedException, TransientFailureException
from ..services import WorkflowOrchestrator


class WorkflowOrchestratorTest(SimpleTestCase):

    def setUp(self):
        self.sleeps = []
        self.orchestrator = WorkflowOrchestrator(retries=3, backoff=0.05, sleep=self.sleeps.append)

    def test_success_on_first_attempt(self):
        func = Mock(return_value='done')

        self.assertEqual(self.orchestrator.run('op', func, 1, key='value'), 'done')
        func.assert_called_once_with(1, key='value')
        self.assertEqual(self.sleeps, [])

    def test_storage_failure_is_retried(self):
        func = Mock(side_effect=[OperationalError('database is locked'), 'done'])

        self.assertEqual(self.orchestrator.run('op', func), 'done')
        self.assertEqual(func.call_count, 2)
        self.assertEqual(self.sleeps, [0.05])

    def test_persistent_failure_surfaces_as_transient(self):
        func = Mock(side_effect=OperationalError('could not serialize access'))

        with self.assertRaises(TransientFailureException) as ctx:
            self.orchestrator.run('claim_job', func)

        self.assertEqual(func.call_count, 3)
        self.assertEqual(ctx.exception.code, 'TRANSIENT_FAILURE')
        self.assertEqual(ctx.exception.details, {'operation': 'claim_job', 'attempts': 3})
        self.assertEqual(self.sleeps, [0.05, 0.1])

    def test_business_errors_are_not_retried(self):
        func = Mock(side_effect=AlreadyClaimedException('job-1'))

        with self.assertRaises(AlreadyClaimedException):
            self.orchestrator.run('claim_job', func)

        func.assert_called_once_with()
        self.assertEqual(self.sleeps, [])

    @override_settings(FULFILLMENT={'TRANSACTION_RETRIES': 5, 'RETRY_BACKOFF_SECONDS': 0.5})
    def test_defaults_come_from_settings(self):
        orchestrator = WorkflowOrchestrator(sleep=self.sleeps.append)
        func = Mock(side_effect=OperationalError('deadlock detected'))

        with self.assertRaises(TransientFailureException):
            orchestrator.run('op', func)

        self.assertEqual(func.call_count, 5)
        self.assertEqual(self.sleeps, [0.5, 1.0, 1.5, 2.0])
