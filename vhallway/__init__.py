"""vhallway: recurring small-group meetings with cohort topic elections."""
