"""Helpers for fuzz-testing a Raft cluster: a hashing FSM, a leader verifier, a seeded entry source and directory resolution."""