from intake_api.services.appointment_service import (
    AppointmentClient,
    build_appointment_request,
    claim_appointment,
    should_create_appointment,
)
from intake_api.services.conversation_service import (
    find_active_conversation,
    get_or_create_conversation,
    is_active,
    record_inbound_turn,
)
from intake_api.services.intake_pipeline import IntakeOutcome, IntakePipeline
from intake_api.services.state_merge import MergedState, apply_merged_state, merge_session_state
from intake_api.services.tenant_service import TenantNotConfiguredError, resolve_tenant
from intake_api.services.transcript import TurnRole, append_turn, build_turn
