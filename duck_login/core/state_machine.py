# Login flow states

# Interaction Surface: Identifier entry (initial state, also after "Back")
# Remote calls: OTP request
ENTER_IDENTIFIER = "ENTER_IDENTIFIER"

# Interaction Surface: One-time passphrase entry
# Remote calls: login, then alias generation
ENTER_OTP = "ENTER_OTP"

INITIAL_STATE = ENTER_IDENTIFIER

# Transition events
OTP_SENT = "OTP_SENT"
CANCEL = "CANCEL"

TRANSITIONS = {
    (ENTER_IDENTIFIER, OTP_SENT): ENTER_OTP,
    (ENTER_OTP, CANCEL): ENTER_IDENTIFIER,
    # Cancelling twice lands in the same place
    (ENTER_IDENTIFIER, CANCEL): ENTER_IDENTIFIER,
}


class InvalidTransition(RuntimeError):
    def __init__(self, state: str, event: str):
        super().__init__(f"No transition from {state} on {event}")
        self.state = state
        self.event = event


def next_state(state: str, event: str) -> str:
    try:
        return TRANSITIONS[(state, event)]
    except KeyError:
        raise InvalidTransition(state, event) from None
