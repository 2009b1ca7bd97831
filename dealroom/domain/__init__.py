"""Domain packages: availability (slot store), meetings (booking and negotiation), notifications."""
