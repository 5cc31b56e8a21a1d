from sentinelbox.support.mixins import CommonEqualityMixin, StringerMixin


class RetryState(CommonEqualityMixin, StringerMixin):
    """
    Retry bookkeeping for one failover cycle.

    The cycle as a whole is bounded by the deadline, computed once from the timeout when the cycle starts.
    Each pass of the cycle counts its discovery attempts from zero and gets its own timeout budget.
    A timeout of None or 0 expires the cycle after its first pass, and that pass is not timed.
    """

    def __init__(self, timeout, wait_interval, current_time):
        """
        :param timeout: The failover reconnect timeout in seconds, or None.
        :param wait_interval: How long to wait between passes, in seconds.
        :param current_time: The time the cycle starts.
        """
        self.timeout = timeout or 0
        self.wait_interval = wait_interval
        self.deadline = current_time + self.timeout
        self.attempt_count = 0
        self.pass_deadline = None

    def begin_pass(self, current_time):
        """ resets the attempt count and starts the timeout budget for a new pass """
        self.attempt_count = 0
        self.pass_deadline = current_time + self.timeout if self.timeout else None

    def attempt(self):
        self.attempt_count += 1
        return self.attempt_count

    def exhausted(self, limit):
        return self.attempt_count >= limit

    def expired(self, current_time):
        """ determines if the cycle deadline has passed. Without a timeout, the cycle ends after its first pass. """
        return not self.timeout or current_time > self.deadline

    def pass_expired(self, current_time):
        """ determines if the current pass has used up its timeout budget. """
        return self.pass_deadline is not None and current_time > self.pass_deadline

    def __call__(self, current_time):
        """
        :return: the length of time to wait until the next pass, or a negative value when
            the deadline has passed and no further pass should be made.
        """
        return -1 if self.expired(current_time) else self.wait_interval
