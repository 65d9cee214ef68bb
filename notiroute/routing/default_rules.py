"""The routing rules loaded at startup by ``RoutingEngine.with_default_rules``."""

from __future__ import annotations

from notiroute.models.events import Priority
from notiroute.models.notifications import NotificationChannel
from notiroute.models.routing import RoutingRule

EMAIL = NotificationChannel.EMAIL
SMS = NotificationChannel.SMS


DEFAULT_RULES: list[RoutingRule] = [
    RoutingRule.for_event_type(
        "USER_REGISTERED",
        "User Registration Welcome",
        [EMAIL, SMS],
        "Welcome {name}! Your account has been created successfully. "
        "Get started by exploring our features!",
        "Welcome to our platform, {name}!",
    ),
    RoutingRule.for_event_type(
        "PAYMENT_COMPLETED",
        "Payment Confirmation",
        [EMAIL, SMS],
        "Payment of ${amount} has been processed successfully. "
        "Transaction ID: {transactionId}",
        "Payment Confirmation - ${amount}",
    ),
    RoutingRule.for_event_type(
        "ORDER_SHIPPED",
        "Order Shipped Notification",
        [EMAIL, SMS],
        "Great news! Your order #{orderId} has been shipped and will arrive by "
        "{deliveryDate}. Track: {trackingUrl}",
        "Your order #{orderId} has shipped!",
    ),
    RoutingRule.for_high_priority(
        [SMS, EMAIL],
        "URGENT: {message} - Please take immediate action.",
        "Urgent Notification",
    ),
    RoutingRule.create(
        "Security Alert",
        lambda event: event.event_type == "SECURITY_ALERT",
        [EMAIL, SMS],
        "Security Alert: {alertType} detected for your account at {timestamp}. "
        "If this wasn't you, please secure your account immediately.",
        "Security Alert - {alertType}",
        9,
    ),
    RoutingRule.for_event_type(
        "PASSWORD_RESET",
        "Password Reset Request",
        [EMAIL],
        "You requested a password reset. Click here to reset: {resetUrl}. "
        "This link expires in 30 minutes.",
        "Password Reset Request",
    ),
    RoutingRule.for_event_type(
        "ACCOUNT_VERIFICATION",
        "Account Verification",
        [EMAIL, SMS],
        "Please verify your account using this code: {verificationCode}. "
        "Code expires in 10 minutes.",
        "Account Verification Required",
    ),
    RoutingRule.for_priority(
        Priority.LOW,
        "Low Priority Updates",
        [EMAIL],
        "{message}",
        "Update: {subject}",
        1,
    ),
]
