"""Meeting domain - booking transaction and negotiation state machine"""
