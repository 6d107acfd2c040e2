"""Application-wide constants."""

PROJECT_NAME = "Advancia Pay Ledger"
API_PREFIX = "/api"
SOCKETIO_PATH = "socket.io"

IDEMPOTENCY_HEADER = "Idempotency-Key"
IDEMPOTENCY_REPLAY_HEADER = "Idempotency-Replay"
IDEMPOTENCY_KEY_MIN_LENGTH = 16
IDEMPOTENCY_KEY_MAX_LENGTH = 64

NOWPAYMENTS_SIGNATURE_HEADER = "x-nowpayments-sig"
ALCHEMY_PAY_SIGNATURE_HEADER = "signature"
STRIPE_SIGNATURE_HEADER = "stripe-signature"
