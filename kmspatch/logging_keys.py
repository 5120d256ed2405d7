LOG_MESSAGE_RECONCILE_START = "Reconcile:Start"
LOG_MESSAGE_RECONCILE_COMPLETE = "Reconcile:Complete"
LOG_MESSAGE_RECONCILE_ABORTED = "Reconcile:Aborted"
LOG_MESSAGE_KEYS_LISTED = "Keys:Listed"
LOG_MESSAGE_KEY_SKIPPED = "Key:Skipped"
LOG_MESSAGE_KEY_UNREADABLE = "Key:Unreadable"
LOG_MESSAGE_KEY_ELIGIBLE = "Key:Eligible"
LOG_MESSAGE_KEY_POLICY_BACKED_UP = "KeyPolicy:BackedUp"
LOG_MESSAGE_KEY_POLICY_UPDATED = "KeyPolicy:Updated"
LOG_MESSAGE_KEY_POLICY_UNCHANGED = "KeyPolicy:Unchanged"
LOG_MESSAGE_KEY_POLICY_PLANNED = "KeyPolicy:Planned"
LOG_MESSAGE_KEY_POLICY_FAILED = "KeyPolicy:Failed"
