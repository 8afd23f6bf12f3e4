"""REST API for AI Bootcamp registrations, checkout and Stripe webhooks."""
