"""Jobs domain - job posting, editing, completion, cancellation and location visibility"""
