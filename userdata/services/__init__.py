"""Services built on the core record helpers: random user generation and stats."""
