"""
handlers/ - Presentation Layer
================================
Telegram bot handlers. Each handler reads the AppServices container from
`context.bot_data`, calls the ledger, settings or report services, and sends
the response back to the user. No business logic lives here.
"""
