"""Remote-pagination cache: store, mediator and pagers."""
