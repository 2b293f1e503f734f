"""HTTP API for Roastr."""
