"""Applications domain - maid applications and the accept/reject cascade"""
