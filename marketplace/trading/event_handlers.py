from ..shared_kernel import DomainEvent, ILogger


def audit_domain_event(event: DomainEvent, logger: ILogger) -> None:
    """Записывает в журнал каждое опубликованное событие площадки."""
    logger.info(
        f"Event {event.event_type}",
        **event.model_dump(mode="json", exclude={"event_type"}),
    )
