from ballot.policy.resolver import PolicyResolver, VotingPolicy

__all__ = ["PolicyResolver", "VotingPolicy"]
