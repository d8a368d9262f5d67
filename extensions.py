"""
Flask extensions initialization.
Extensions are created here and then initialized with the app in app.py.
"""

from services.messaging import SmsGateway
from utils.change_feed import ChangeFeed

# Reservation change notifications (SSE endpoint and in-process subscribers)
change_feed = ChangeFeed()

# Outbound SMS (OpenPhone)
sms = SmsGateway()
