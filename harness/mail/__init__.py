"""Mailboxes and queues: domain model, handlers, delivery, command line and Postmark webhook."""