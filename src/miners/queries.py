"""
GraphQL query documents used by the miners.

Paged queries take a ``$cursor`` variable and select ``pageInfo`` on the
paged connection.
"""

PAGE_INFO = """
      pageInfo {
        hasNextPage
        endCursor
      }
"""

USER_PULL_REQUESTS_QUERY = (
    """
query($cursor: String, $login: String!, $since: DateTime!, $until: DateTime!) {
  user(login: $login) {
    contributionsCollection(from: $since, to: $until) {
      pullRequestContributions(first: 100, after: $cursor) {
        nodes {
          pullRequest {
            number
            title
            body
            repository { nameWithOwner }
            createdAt
            updatedAt
            mergedAt
            closedAt
            isDraft
            state
            additions
            deletions
            comments { totalCount }
            reviews { totalCount }
          }
        }
"""
    + PAGE_INFO
    + """
      }
    }
  }
}
"""
)

USER_REVIEWS_QUERY = (
    """
query($cursor: String, $login: String!, $since: DateTime!, $until: DateTime!) {
  user(login: $login) {
    contributionsCollection(from: $since, to: $until) {
      pullRequestReviewContributions(first: 100, after: $cursor) {
        nodes {
          pullRequestReview {
            createdAt
            updatedAt
            state
            comments { totalCount }
            repository { nameWithOwner }
            pullRequest {
              number
              title
              author { login }
            }
          }
        }
"""
    + PAGE_INFO
    + """
      }
    }
  }
}
"""
)

USER_ISSUES_QUERY = (
    """
query($cursor: String, $login: String!, $since: DateTime!, $until: DateTime!) {
  user(login: $login) {
    contributionsCollection(from: $since, to: $until) {
      issueContributions(first: 100, after: $cursor) {
        nodes {
          issue {
            number
            title
            body
            repository { nameWithOwner }
            createdAt
            updatedAt
            closedAt
            state
            comments { totalCount }
          }
        }
"""
    + PAGE_INFO
    + """
      }
    }
  }
}
"""
)

USER_COMMIT_BUCKETS_QUERY = """
query($login: String!, $since: DateTime!, $until: DateTime!) {
  user(login: $login) {
    contributionsCollection(from: $since, to: $until) {
      commitContributionsByRepository(maxRepositories: 100) {
        repository { nameWithOwner }
        contributions { totalCount }
      }
    }
  }
}
"""

USER_ID_QUERY = """
query($login: String!) {
  user(login: $login) {
    id
  }
}
"""

PR_COMMENTS_QUERY = (
    """
query($cursor: String, $owner: String!, $name: String!, $number: Int!) {
  repository(owner: $owner, name: $name) {
    pullRequest(number: $number) {
      comments(first: 100, after: $cursor) {
        nodes {
          author { login }
          body
          createdAt
          updatedAt
          url
          reactionGroups {
            content
            reactors { totalCount }
          }
        }
"""
    + PAGE_INFO
    + """
      }
    }
  }
}
"""
)

PR_REVIEWS_QUERY = (
    """
query($cursor: String, $owner: String!, $name: String!, $number: Int!) {
  repository(owner: $owner, name: $name) {
    pullRequest(number: $number) {
      reviews(first: 100, after: $cursor) {
        nodes {
          author { login }
          state
          body
          createdAt
          url
          comments { totalCount }
        }
"""
    + PAGE_INFO
    + """
      }
    }
  }
}
"""
)

PR_FILES_QUERY = """
query($owner: String!, $name: String!, $number: Int!) {
  repository(owner: $owner, name: $name) {
    pullRequest(number: $number) {
      files(first: 100) {
        nodes {
          path
          additions
          deletions
          changeType
        }
      }
    }
  }
}
"""

PR_TIMELINE_QUERY = """
query($owner: String!, $name: String!, $number: Int!) {
  repository(owner: $owner, name: $name) {
    pullRequest(number: $number) {
      timelineItems(
        first: 100
        itemTypes: [READY_FOR_REVIEW_EVENT, REVIEW_REQUESTED_EVENT, MERGED_EVENT, CLOSED_EVENT]
      ) {
        nodes {
          __typename
          ... on ReadyForReviewEvent { actor { login } createdAt }
          ... on ReviewRequestedEvent {
            actor { login }
            createdAt
            requestedReviewer {
              ... on User { login }
              ... on Team { name }
            }
          }
          ... on MergedEvent { actor { login } createdAt }
          ... on ClosedEvent { actor { login } createdAt }
        }
      }
    }
  }
}
"""

COMMIT_HISTORY_QUERY = (
    """
query($cursor: String, $owner: String!, $name: String!, $authorId: ID!,
      $since: GitTimestamp!, $until: GitTimestamp!) {
  repository(owner: $owner, name: $name) {
    defaultBranchRef {
      target {
        ... on Commit {
          history(first: 100, after: $cursor, author: {id: $authorId}, since: $since, until: $until) {
            nodes {
              oid
              messageHeadline
              messageBody
              committedDate
              url
            }
"""
    + PAGE_INFO
    + """
          }
        }
      }
    }
  }
}
"""
)

REPOSITORY_METADATA_QUERY = """
query($owner: String!, $name: String!) {
  repository(owner: $owner, name: $name) {
    description
    repositoryTopics(first: 20) {
      nodes { topic { name } }
    }
  }
}
"""

HEALTH_PULL_REQUESTS_QUERY = (
    """
query($cursor: String, $owner: String!, $name: String!) {
  repository(owner: $owner, name: $name) {
    pullRequests(first: 100, after: $cursor, orderBy: {field: CREATED_AT, direction: DESC}) {
      nodes {
        number
        title
        createdAt
        author { login }
        isDraft
        comments(first: 10) {
          nodes { author { login } createdAt }
        }
        reviews(first: 10) {
          nodes { author { login } createdAt state }
        }
        timelineItems(first: 10, itemTypes: [CLOSED_EVENT, MERGED_EVENT, READY_FOR_REVIEW_EVENT]) {
          nodes {
            __typename
            ... on ClosedEvent { actor { login } createdAt }
            ... on MergedEvent { actor { login } createdAt }
            ... on ReadyForReviewEvent { actor { login } createdAt }
          }
        }
      }
"""
    + PAGE_INFO
    + """
    }
  }
}
"""
)

OPEN_PULL_REQUESTS_QUERY = (
    """
query($cursor: String, $owner: String!, $name: String!) {
  repository(owner: $owner, name: $name) {
    pullRequests(
      first: 100
      after: $cursor
      states: [OPEN]
      orderBy: {field: CREATED_AT, direction: DESC}
    ) {
      nodes {
        number
        title
        createdAt
        state
        isDraft
        url
      }
"""
    + PAGE_INFO
    + """
    }
  }
}
"""
)
