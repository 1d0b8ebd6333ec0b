"""Static analysis of agent artifacts: single-document and corpus checks."""
