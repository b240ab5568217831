"""TaskTrack flows — credential handling, task reconciliation and notifications."""

from tasktrack.flows.credentials import AuthMode, CredentialFlowController  # noqa: F401
from tasktrack.flows.notifications import NotificationChannel  # noqa: F401
from tasktrack.flows.tasks import EditDraft, TaskDraft, TaskReconciler  # noqa: F401
