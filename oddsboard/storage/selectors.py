"""Read-only views over the store state"""
from typing import Dict, List, Optional

from .models import ErrorRecord, Match, MatchId, StoreState, STATUS_CONNECTED


def select_matches(state: StoreState) -> List[Match]:
    return state.matches


def select_matches_loading(state: StoreState) -> bool:
    return state.loading


def select_matches_error(state: StoreState) -> Optional[str]:
    return state.error


def select_last_updated(state: StoreState) -> Optional[str]:
    return state.last_updated


def select_is_auto_update_enabled(state: StoreState) -> bool:
    return state.is_auto_update_enabled


def select_match_by_id(state: StoreState, match_id: MatchId) -> Optional[Match]:
    for match in state.matches:
        if match.id == match_id:
            return match
    return None


def select_update_mode(state: StoreState) -> str:
    return state.update_mode


def select_polling_interval(state: StoreState) -> int:
    return state.polling_interval


def select_api_call_count(state: StoreState) -> int:
    return state.api_call_count


def select_last_api_call(state: StoreState) -> Optional[str]:
    return state.last_api_call


def select_hot_matches(state: StoreState) -> List[Match]:
    return [match for match in state.matches if match.is_hot]


def select_matches_count(state: StoreState) -> int:
    return len(state.matches)


def select_error_history(state: StoreState) -> List[ErrorRecord]:
    return state.error_history


def select_connection_status(state: StoreState) -> str:
    return state.connection_status


def select_retry_count(state: StoreState) -> int:
    return state.retry_count


def select_max_retries(state: StoreState) -> int:
    return state.max_retries


def select_loading_states(state: StoreState) -> Dict[str, bool]:
    return state.loading_states


def select_is_connected(state: StoreState) -> bool:
    return state.connection_status == STATUS_CONNECTED


def select_can_retry(state: StoreState) -> bool:
    """Whether the initial load may still be retried"""
    return state.retry_count < state.max_retries
